"""Unit tests for the OpenAI-compatible model-service adapter."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from src.config.settings import Settings
from src.interfaces.llm_provider import ToolDefinition
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.utils.errors import LLMError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_text_model": "",
        "openai_embedding_model": "",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _completion(content: str | None, tool_calls=None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content, tool_calls=tool_calls))]
    response.usage = MagicMock(total_tokens=42)
    return response


def _chunk(content: str | None) -> MagicMock:
    chunk = MagicMock()
    chunk.choices = [MagicMock(delta=MagicMock(content=content))]
    return chunk


class _FakeStream:
    def __init__(self, chunks, error: Exception | None = None) -> None:
        self._chunks = list(chunks)
        self._error = error

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._chunks:
            return self._chunks.pop(0)
        if self._error is not None:
            raise self._error
        raise StopAsyncIteration


def _api_error(message: str = "server exploded") -> openai.APIError:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.APIError(message, request=request, body=None)


class TestOpenAILLMProvider:
    @pytest.fixture()
    def client(self) -> MagicMock:
        client = MagicMock()
        client.chat.completions.create = AsyncMock()
        client.models.list = AsyncMock()
        return client

    @pytest.fixture()
    def provider(self, client: MagicMock) -> OpenAILLMProvider:
        return OpenAILLMProvider(_settings(), client=client)

    def test_provider_name(self) -> None:
        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI"):
            assert OpenAILLMProvider(_settings()).get_provider_name() == "openai"
            compatible = OpenAILLMProvider(_settings(openai_base_url="http://localhost:1234/v1"))
            assert compatible.get_provider_name() == "openai-compatible"

    def test_base_url_passed_to_client(self) -> None:
        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI") as client_cls:
            OpenAILLMProvider(_settings(openai_base_url="http://localhost:1234/v1"))
        assert client_cls.call_args.kwargs["base_url"] == "http://localhost:1234/v1"

    def test_is_available(self, client: MagicMock) -> None:
        assert OpenAILLMProvider(_settings(), client=client).is_available() is True
        assert OpenAILLMProvider(_settings(openai_api_key=""), client=client).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_success(self, provider: OpenAILLMProvider, client: MagicMock) -> None:
        client.chat.completions.create.return_value = _completion("LLM response text")

        result = await provider.complete("system prompt", "user prompt", temperature=0.2)

        assert result == "LLM response text"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"][0] == {"role": "system", "content": "system prompt"}
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_complete_json_mode(self, provider: OpenAILLMProvider, client: MagicMock) -> None:
        client.chat.completions.create.return_value = _completion("{}")

        await provider.complete("s", "u", json_mode=True)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_complete_api_error(self, provider: OpenAILLMProvider, client: MagicMock) -> None:
        client.chat.completions.create.side_effect = _api_error()

        with pytest.raises(LLMError) as exc_info:
            await provider.complete("s", "u")
        assert exc_info.value.provider_name == "openai"

    @pytest.mark.asyncio
    async def test_complete_empty_content(self, provider: OpenAILLMProvider, client: MagicMock) -> None:
        client.chat.completions.create.return_value = _completion(None)

        with pytest.raises(LLMError, match="empty response"):
            await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_stream_complete_yields_fragments(
        self, provider: OpenAILLMProvider, client: MagicMock
    ) -> None:
        empty_choices = MagicMock()
        empty_choices.choices = []
        client.chat.completions.create.return_value = _FakeStream(
            [_chunk(None), _chunk("Hel"), empty_choices, _chunk(""), _chunk("lo")]
        )

        fragments = [
            f
            async for f in provider.stream_complete(
                [{"role": "user", "content": "hi"}], system_prompt="be nice"
            )
        ]

        assert fragments == ["Hel", "lo"]
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["messages"] == [
            {"role": "system", "content": "be nice"},
            {"role": "user", "content": "hi"},
        ]

    @pytest.mark.asyncio
    async def test_stream_error_mid_stream(
        self, provider: OpenAILLMProvider, client: MagicMock
    ) -> None:
        client.chat.completions.create.return_value = _FakeStream(
            [_chunk("partial")], error=_api_error("connection reset")
        )

        received: list[str] = []
        with pytest.raises(LLMError, match="streaming error"):
            async for fragment in provider.stream_complete([{"role": "user", "content": "hi"}]):
                received.append(fragment)
        assert received == ["partial"]

    @pytest.mark.asyncio
    async def test_complete_with_tools_parses_calls(
        self, provider: OpenAILLMProvider, client: MagicMock
    ) -> None:
        tool_call = MagicMock(id="call_1")
        tool_call.function.name = "showWeather"
        tool_call.function.arguments = json.dumps({"city": "Ithaca", "unit": "F"})
        client.chat.completions.create.return_value = _completion(None, tool_calls=[tool_call])

        tool = ToolDefinition(
            name="showWeather",
            description="Show the weather for a given location.",
            parameters={"type": "object", "properties": {"city": {"type": "string"}}},
        )
        completion = await provider.complete_with_tools(
            [{"role": "user", "content": "weather?"}], tools=[tool]
        )

        assert completion.text == ""
        assert len(completion.tool_calls) == 1
        call = completion.tool_calls[0]
        assert call.name == "showWeather"
        assert call.arguments == {"city": "Ithaca", "unit": "F"}
        assert call.call_id == "call_1"

        payload = client.chat.completions.create.call_args.kwargs["tools"]
        assert payload[0]["type"] == "function"
        assert payload[0]["function"]["name"] == "showWeather"

    @pytest.mark.asyncio
    async def test_complete_with_tools_text_only(
        self, provider: OpenAILLMProvider, client: MagicMock
    ) -> None:
        client.chat.completions.create.return_value = _completion("Just text", tool_calls=None)

        completion = await provider.complete_with_tools([{"role": "user", "content": "hi"}], tools=[])

        assert completion.text == "Just text"
        assert completion.tool_calls == []

    @pytest.mark.asyncio
    async def test_complete_with_tools_bad_arguments(
        self, provider: OpenAILLMProvider, client: MagicMock
    ) -> None:
        tool_call = MagicMock(id="call_1")
        tool_call.function.name = "showWeather"
        tool_call.function.arguments = "{not json"
        client.chat.completions.create.return_value = _completion(None, tool_calls=[tool_call])

        with pytest.raises(LLMError, match="not valid JSON"):
            await provider.complete_with_tools([{"role": "user", "content": "hi"}], tools=[])

    @pytest.mark.asyncio
    async def test_validate_credentials(self, provider: OpenAILLMProvider, client: MagicMock) -> None:
        assert await provider.validate_credentials() is True

        client.models.list.side_effect = _api_error("unauthorized")
        assert await provider.validate_credentials() is False
