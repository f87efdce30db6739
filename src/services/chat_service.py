"""Conversational orchestration over retrieved context.

Two turn shapes share the same retrieval step (the last user message is
turned into a context block by :class:`ContextAssembler`):

* :meth:`ChatService.stream_reply` streams the model's answer fragment by
  fragment, with the context in the system prompt.
* :meth:`ChatService.respond_with_tools` runs one non-streamed turn in which
  the model may call a declared tool.  Tool handlers render into a
  :class:`StreamableUI` that is returned as the reply's ``display``.

Model-service errors are not caught here; they reach the caller as
:class:`~src.utils.errors.LLMError`.
"""

from __future__ import annotations

from typing import AsyncIterator

from src.interfaces.llm_provider import ILLMProvider
from src.models.chat import ChatMessage, ChatTurnResult
from src.services.context_assembler import ContextAssembler
from src.services.tools import ToolRegistry, default_registry
from src.utils.logging import get_logger
from src.utils.streamable import StreamableUI

logger = get_logger(__name__)

_TEXT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the following context to help answer the "
    "question. The context includes dates, relevance scores, sources, and "
    "categories - use this information to provide more complete answers. When "
    "citing information, mention the source. Here's the context:\n\n{context}"
)

_TOOL_SYSTEM_PROMPT = (
    "You are a friendly weather assistant. Use this context to help with "
    "current information: {context}"
)


class ChatService:
    """Runs chat turns against the model service.

    Parameters
    ----------
    llm:
        Model service for both streamed and tool-calling turns.
    context_assembler:
        Builds the retrieval context from the latest user message.
    tools:
        Tools offered on tool-augmented turns (``showWeather`` by default).
    """

    def __init__(
        self,
        llm: ILLMProvider,
        context_assembler: ContextAssembler,
        tools: ToolRegistry | None = None,
    ) -> None:
        self._llm = llm
        self._context_assembler = context_assembler
        self._tools = tools or default_registry()

    async def stream_reply(self, messages: list[ChatMessage]) -> AsyncIterator[str]:
        """Yield the assistant's answer to *messages* as it is generated."""
        latest = _latest_user_message(messages)
        context = await self._context_assembler.build_context(latest.content)
        logger.info("chat_stream_started", turns=len(messages), has_context=bool(context))

        async for fragment in self._llm.stream_complete(
            _to_model_messages(messages),
            system_prompt=_TEXT_SYSTEM_PROMPT.format(context=context),
        ):
            yield fragment

    async def respond_with_tools(self, history: list[ChatMessage]) -> ChatTurnResult:
        """Run one tool-augmented turn and append the assistant's reply.

        The reply's content is the model's text, or the tool results joined
        with commas when the model produced no text.  ``display`` is set only
        when at least one tool ran; the handle is closed exactly once.
        """
        latest = _latest_user_message(history)
        context = await self._context_assembler.build_context(latest.content)

        completion = await self._llm.complete_with_tools(
            _to_model_messages(history),
            tools=self._tools.definitions(),
            system_prompt=_TOOL_SYSTEM_PROMPT.format(context=context),
        )

        ui = StreamableUI()
        results = [self._tools.execute(call, ui) for call in completion.tool_calls]
        display: StreamableUI | None = None
        if results:
            ui.done()
            display = ui

        reply = ChatMessage(
            role="assistant",
            content=completion.text or ",".join(results),
            display=display,
        )
        logger.info(
            "chat_tool_turn_completed",
            turns=len(history),
            tools_run=len(results),
            has_context=bool(context),
        )
        return ChatTurnResult(messages=[*history, reply])


def _latest_user_message(messages: list[ChatMessage]) -> ChatMessage:
    if not messages:
        raise ValueError("Conversation must contain at least one message")
    latest = messages[-1]
    if latest.role != "user":
        raise ValueError("The last message of a conversation must come from the user")
    return latest


def _to_model_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]
