"""Conversation models for the chat endpoints."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One turn of a conversation.

    ``display`` carries a render handle (:class:`src.utils.streamable.StreamableUI`)
    and is only set on assistant messages produced by a tool call.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    role: Literal["user", "assistant"]
    content: str
    display: Any | None = Field(default=None, exclude=True)


class ChatTurnResult(BaseModel):
    """History as passed in, plus exactly one new assistant message."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    messages: list[ChatMessage]

    @property
    def reply(self) -> ChatMessage:
        return self.messages[-1]


class WeatherParams(BaseModel):
    """Arguments of the ``showWeather`` tool."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    city: str = Field(description="The city to show the weather for.")
    unit: Literal["F"] = Field(description="The unit to display the temperature in")


class WeatherView(BaseModel):
    """Renderable weather card produced by the ``showWeather`` tool."""

    model_config = ConfigDict(frozen=True)

    component: Literal["weather"] = "weather"
    city: str
    unit: Literal["F"]
