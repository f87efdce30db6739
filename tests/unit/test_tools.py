"""Unit tests for the tool registry and the showWeather tool."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from src.interfaces.llm_provider import ToolCall
from src.models.chat import WeatherView
from src.services.tools import SHOW_WEATHER, ToolRegistry, ToolSpec, default_registry
from src.utils.errors import ToolExecutionError
from src.utils.streamable import StreamableUI


class TestDefaultRegistry:
    def test_show_weather_definition(self) -> None:
        registry = default_registry()
        assert registry.names() == ["showWeather"]

        (definition,) = registry.definitions()
        assert definition.name == "showWeather"
        assert definition.description == "Show the weather for a given location."
        assert set(definition.parameters["properties"]) == {"city", "unit"}
        assert set(definition.parameters["required"]) == {"city", "unit"}

    def test_show_weather_executes(self) -> None:
        ui = StreamableUI()
        result = default_registry().execute(
            ToolCall(name="showWeather", arguments={"city": "Ithaca", "unit": "F"}), ui
        )

        assert result == "Here's the weather for Ithaca!"
        assert ui.value == WeatherView(city="Ithaca", unit="F")
        assert ui.is_done is False

    def test_unknown_tool(self) -> None:
        with pytest.raises(ToolExecutionError, match="Unknown tool"):
            default_registry().execute(ToolCall(name="launchRocket", arguments={}), StreamableUI())

    @pytest.mark.parametrize(
        "arguments",
        [
            {"city": "Ithaca"},
            {"city": "Ithaca", "unit": "C"},
            {"city": "Ithaca", "unit": "F", "extra": True},
            {},
        ],
    )
    def test_invalid_arguments(self, arguments: dict) -> None:
        ui = StreamableUI()
        with pytest.raises(ToolExecutionError, match="Invalid arguments"):
            default_registry().execute(ToolCall(name="showWeather", arguments=arguments), ui)
        assert ui.value is None


class TestToolRegistry:
    def test_duplicate_registration_rejected(self) -> None:
        registry = ToolRegistry([SHOW_WEATHER])
        with pytest.raises(ValueError):
            registry.register(SHOW_WEATHER)

    def test_custom_tool(self) -> None:
        class EchoParams(BaseModel):
            text: str

        def echo(params: EchoParams, ui: StreamableUI) -> str:
            ui.update({"echo": params.text})
            return params.text

        registry = ToolRegistry([ToolSpec("echo", "Echo text back.", EchoParams, echo)])
        ui = StreamableUI()

        assert registry.execute(ToolCall(name="echo", arguments={"text": "hi"}), ui) == "hi"
        assert ui.value == {"echo": "hi"}
