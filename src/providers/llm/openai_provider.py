"""OpenAI-compatible model-service adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`:
plain completions (optionally JSON-constrained) for metadata extraction,
streamed chat completions for the text chat, and tool-calling turns for the
tool-augmented chat.  When ``openai_base_url`` is configured the client
points at that OpenAI-compatible endpoint instead.

Every SDK exception is wrapped in :class:`LLMError`; nothing here retries.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider, ToolCall, ToolCompletion, ToolDefinition
from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """Model service backed by an OpenAI-compatible API (default ``gpt-4o-mini``)."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key

        if client is None:
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": openai.Timeout(60.0, connect=5.0),
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)

        self._client = client
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        request: dict[str, Any] = {
            "model": self._text_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content
        if content is None:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            json_mode=json_mode,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def stream_complete(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        """Yield content deltas as the model produces them.

        Chunks without text (role headers, the final usage chunk) are
        skipped, so every yielded value is a non-empty string.
        """
        try:
            stream = await self._client.chat.completions.create(
                model=self._text_model,
                messages=_with_system(messages, system_prompt),
                temperature=temperature,
                stream=True,
            )
            fragments = 0
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    fragments += 1
                    yield delta
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} streaming error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "openai_stream_complete",
            model=self._text_model,
            provider=self._provider_label,
            fragments=fragments,
        )

    async def complete_with_tools(
        self,
        messages: list[dict[str, str]],
        tools: list[ToolDefinition],
        system_prompt: str | None = None,
        temperature: float = 0.7,
    ) -> ToolCompletion:
        tool_payload = [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=_with_system(messages, system_prompt),
                temperature=temperature,
                tools=tool_payload,
            )
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        message = response.choices[0].message
        calls: list[ToolCall] = []
        for tc in message.tool_calls or []:
            try:
                arguments = json.loads(tc.function.arguments or "{}")
            except json.JSONDecodeError as exc:
                raise LLMError(
                    message=f"Tool '{tc.function.name}' arguments are not valid JSON",
                    provider_name=self.get_provider_name(),
                ) from exc
            calls.append(ToolCall(name=tc.function.name, arguments=arguments, call_id=tc.id))

        logger.info(
            "openai_tool_completion",
            model=self._text_model,
            provider=self._provider_label,
            tool_calls=[c.name for c in calls],
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return ToolCompletion(text=message.content or "", tool_calls=calls)

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to confirm the key is accepted, without inference cost."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return self._provider_label


def _with_system(messages: list[dict[str, str]], system_prompt: str | None) -> list[dict[str, str]]:
    if not system_prompt:
        return list(messages)
    return [{"role": "system", "content": system_prompt}, *messages]
