"""Abstract base class for model-service (LLM) providers.

Defines the contract for the language-model backend used for metadata
extraction, streamed chat answers and tool-calling turns.  The adapter
pattern keeps every call-site provider-agnostic; the concrete OpenAI
implementation lives in ``src/providers/llm/``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator


@dataclass(frozen=True)
class ToolDefinition:
    """A tool the model may invoke.

    Attributes
    ----------
    name:
        Identifier the model uses to call the tool.
    description:
        Natural-language description shown to the model.
    parameters:
        JSON Schema object describing the arguments.
    """

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model."""

    name: str
    arguments: dict[str, Any]
    call_id: str = ""


@dataclass(frozen=True)
class ToolCompletion:
    """Non-streamed model answer that may include tool invocations."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


# Concrete implementation: OpenAILLMProvider (src/providers/llm/openai_provider.py)
class ILLMProvider(ABC):
    """Contract for the model service used by ragLite."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        """Generate a single text completion.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request or data.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.
        json_mode:
            Constrain the response to a single JSON object.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    def stream_complete(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        """Stream a chat completion fragment by fragment.

        Parameters
        ----------
        messages:
            Conversation history as ``{"role", "content"}`` dicts.
        system_prompt:
            Optional system message placed before *messages*.

        Returns
        -------
        AsyncIterator[str]
            Lazy, forward-only sequence of text fragments.  Errors from the
            service surface as :class:`~src.utils.errors.LLMError` while
            iterating.
        """

    @abstractmethod
    async def complete_with_tools(
        self,
        messages: list[dict[str, str]],
        tools: list[ToolDefinition],
        system_prompt: str | None = None,
        temperature: float = 0.7,
    ) -> ToolCompletion:
        """Run one non-streamed turn in which the model may call *tools*.

        Returns the model's text (possibly empty) and any tool invocations
        with their arguments decoded from JSON.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or tool arguments are not valid JSON.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm credentials are valid."""
