"""Declarative tool registry for tool-augmented chat turns.

Each tool is a :class:`ToolSpec`: a name, a description for the model, a
pydantic model describing its parameters, and a handler that runs locally
when the model invokes it.  The registry exposes the specs as
:class:`ToolDefinition` objects for the model service and dispatches
invocations by name, validating arguments against the parameter model
before the handler sees them.

Handlers receive the turn's :class:`StreamableUI` and push their rendered
output to it with ``update()``; the chat service closes the handle once all
tools have run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from src.interfaces.llm_provider import ToolCall, ToolDefinition
from src.models.chat import WeatherParams, WeatherView
from src.utils.errors import ToolExecutionError
from src.utils.logging import get_logger
from src.utils.streamable import StreamableUI

logger = get_logger(__name__)

ToolHandler = Callable[[Any, StreamableUI], str]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: type[BaseModel]
    handler: ToolHandler

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters.model_json_schema(),
        )


class ToolRegistry:
    """Name → :class:`ToolSpec` dispatch table."""

    def __init__(self, specs: list[ToolSpec] | None = None) -> None:
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool '{spec.name}' is already registered")
        self._specs[spec.name] = spec

    def names(self) -> list[str]:
        return list(self._specs)

    def definitions(self) -> list[ToolDefinition]:
        return [spec.definition() for spec in self._specs.values()]

    def execute(self, call: ToolCall, ui: StreamableUI) -> str:
        """Validate *call*'s arguments and run the matching handler."""
        spec = self._specs.get(call.name)
        if spec is None:
            raise ToolExecutionError(message=f"Unknown tool '{call.name}'")

        try:
            params = spec.parameters.model_validate(call.arguments)
        except ValidationError as exc:
            raise ToolExecutionError(
                message=f"Invalid arguments for tool '{call.name}': {exc.error_count()} error(s)",
            ) from exc

        result = spec.handler(params, ui)
        logger.info("tool_executed", tool=call.name, call_id=call.call_id)
        return result


def show_weather(params: WeatherParams, ui: StreamableUI) -> str:
    ui.update(WeatherView(city=params.city, unit=params.unit))
    return f"Here's the weather for {params.city}!"


SHOW_WEATHER = ToolSpec(
    name="showWeather",
    description="Show the weather for a given location.",
    parameters=WeatherParams,
    handler=show_weather,
)


def default_registry() -> ToolRegistry:
    return ToolRegistry([SHOW_WEATHER])
