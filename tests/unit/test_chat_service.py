"""Unit tests for ChatService -- streamed and tool-augmented turns."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.llm_provider import ToolCall, ToolCompletion
from src.models.chat import ChatMessage, WeatherView
from src.services.chat_service import ChatService
from src.services.context_assembler import ContextAssembler
from src.utils.errors import LLMError, ToolExecutionError
from src.utils.streamable import StreamableUI


def _user(content: str) -> ChatMessage:
    return ChatMessage(role="user", content=content)


def _assistant(content: str) -> ChatMessage:
    return ChatMessage(role="assistant", content=content)


@pytest.fixture()
def context_assembler() -> MagicMock:
    assembler = MagicMock(spec=ContextAssembler)
    assembler.build_context = AsyncMock(return_value="[1/2/2024 | 80% relevance]\nSnow expected.")
    return assembler


@pytest.fixture()
def service(mock_llm: MagicMock, context_assembler: MagicMock) -> ChatService:
    return ChatService(llm=mock_llm, context_assembler=context_assembler)


async def _fragments(*parts: str):
    for part in parts:
        yield part


class TestStreamReply:
    @pytest.mark.asyncio
    async def test_streams_fragments_with_context(
        self, service: ChatService, mock_llm: MagicMock, context_assembler: MagicMock
    ) -> None:
        mock_llm.stream_complete = MagicMock(return_value=_fragments("It ", "will ", "snow."))
        history = [_user("Hi"), _assistant("Hello!"), _user("Will it snow?")]

        fragments = [f async for f in service.stream_reply(history)]

        assert "".join(fragments) == "It will snow."
        context_assembler.build_context.assert_awaited_once_with("Will it snow?")

        args, kwargs = mock_llm.stream_complete.call_args
        assert args[0] == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "Will it snow?"},
        ]
        assert "Snow expected." in kwargs["system_prompt"]
        assert kwargs["system_prompt"].startswith("You are a helpful assistant.")

    @pytest.mark.asyncio
    async def test_empty_context_still_answers(
        self, service: ChatService, mock_llm: MagicMock, context_assembler: MagicMock
    ) -> None:
        context_assembler.build_context.return_value = ""
        mock_llm.stream_complete = MagicMock(return_value=_fragments("I don't know."))

        fragments = [f async for f in service.stream_reply([_user("Who won?")])]

        assert fragments == ["I don't know."]
        assert mock_llm.stream_complete.call_args.kwargs["system_prompt"].endswith("context:\n\n")

    @pytest.mark.asyncio
    async def test_last_message_must_be_user(self, service: ChatService) -> None:
        with pytest.raises(ValueError):
            async for _ in service.stream_reply([_user("Hi"), _assistant("Hello")]):
                pass

    @pytest.mark.asyncio
    async def test_empty_history_rejected(self, service: ChatService) -> None:
        with pytest.raises(ValueError):
            async for _ in service.stream_reply([]):
                pass

    @pytest.mark.asyncio
    async def test_model_error_propagates(self, service: ChatService, mock_llm: MagicMock) -> None:
        async def failing(*args, **kwargs):
            yield "partial"
            raise LLMError("connection reset", provider_name="openai")

        mock_llm.stream_complete = MagicMock(side_effect=failing)

        received: list[str] = []
        with pytest.raises(LLMError):
            async for fragment in service.stream_reply([_user("Hi")]):
                received.append(fragment)
        assert received == ["partial"]


class TestRespondWithTools:
    @pytest.mark.asyncio
    async def test_text_only_reply(self, service: ChatService, mock_llm: MagicMock) -> None:
        mock_llm.complete_with_tools.return_value = ToolCompletion(text="Hello there!")
        history = [_user("Hi")]

        result = await service.respond_with_tools(history)

        assert len(result.messages) == 2
        assert result.messages[0] is history[0]
        assert result.reply.role == "assistant"
        assert result.reply.content == "Hello there!"
        assert result.reply.display is None

    @pytest.mark.asyncio
    async def test_weather_tool_call(self, service: ChatService, mock_llm: MagicMock) -> None:
        mock_llm.complete_with_tools.return_value = ToolCompletion(
            tool_calls=[ToolCall(name="showWeather", arguments={"city": "Ithaca", "unit": "F"})]
        )

        result = await service.respond_with_tools([_user("Weather in Ithaca?")])

        reply = result.reply
        assert reply.content == "Here's the weather for Ithaca!"
        assert isinstance(reply.display, StreamableUI)
        assert reply.display.is_done is True
        assert reply.display.value == WeatherView(city="Ithaca", unit="F")

        kwargs = mock_llm.complete_with_tools.call_args.kwargs
        assert [t.name for t in kwargs["tools"]] == ["showWeather"]
        assert "weather assistant" in kwargs["system_prompt"]
        assert "Snow expected." in kwargs["system_prompt"]

    @pytest.mark.asyncio
    async def test_multiple_tool_results_joined(self, service: ChatService, mock_llm: MagicMock) -> None:
        mock_llm.complete_with_tools.return_value = ToolCompletion(
            tool_calls=[
                ToolCall(name="showWeather", arguments={"city": "Ithaca", "unit": "F"}),
                ToolCall(name="showWeather", arguments={"city": "Boston", "unit": "F"}),
            ]
        )

        result = await service.respond_with_tools([_user("Weather?")])

        assert result.reply.content == (
            "Here's the weather for Ithaca!,Here's the weather for Boston!"
        )
        assert result.reply.display.value == WeatherView(city="Boston", unit="F")
        assert len(result.reply.display.history) == 2

    @pytest.mark.asyncio
    async def test_model_text_wins_over_tool_results(
        self, service: ChatService, mock_llm: MagicMock
    ) -> None:
        mock_llm.complete_with_tools.return_value = ToolCompletion(
            text="Here you go.",
            tool_calls=[ToolCall(name="showWeather", arguments={"city": "Ithaca", "unit": "F"})],
        )

        result = await service.respond_with_tools([_user("Weather?")])

        assert result.reply.content == "Here you go."
        assert result.reply.display is not None

    @pytest.mark.asyncio
    async def test_invalid_tool_arguments(self, service: ChatService, mock_llm: MagicMock) -> None:
        mock_llm.complete_with_tools.return_value = ToolCompletion(
            tool_calls=[ToolCall(name="showWeather", arguments={"city": "Ithaca", "unit": "C"})]
        )

        with pytest.raises(ToolExecutionError):
            await service.respond_with_tools([_user("Weather?")])

    @pytest.mark.asyncio
    async def test_model_error_propagates(self, service: ChatService, mock_llm: MagicMock) -> None:
        mock_llm.complete_with_tools.side_effect = LLMError("down")

        with pytest.raises(LLMError):
            await service.respond_with_tools([_user("Hi")])

    @pytest.mark.asyncio
    async def test_last_message_must_be_user(self, service: ChatService) -> None:
        with pytest.raises(ValueError):
            await service.respond_with_tools([_assistant("Hello")])
