"""Unit tests for the StreamableUI render handle."""

from __future__ import annotations

import asyncio

import pytest

from src.utils.errors import StreamClosedError
from src.utils.streamable import StreamableUI


class TestStreamableUI:
    def test_initial_state(self) -> None:
        ui = StreamableUI()
        assert ui.value is None
        assert ui.is_done is False
        assert ui.history == []

    def test_initial_value_recorded(self) -> None:
        ui = StreamableUI(initial="loading")
        assert ui.value == "loading"
        assert ui.history == ["loading"]

    def test_update_then_done(self) -> None:
        ui = StreamableUI()
        ui.update("a")
        ui.update("b")
        ui.done()
        assert ui.value == "b"
        assert ui.history == ["a", "b"]
        assert ui.is_done is True

    def test_done_with_final_value(self) -> None:
        ui = StreamableUI()
        ui.done("final")
        assert ui.value == "final"

    def test_update_after_done_raises(self) -> None:
        ui = StreamableUI()
        ui.done()
        with pytest.raises(StreamClosedError):
            ui.update("late")

    def test_done_twice_raises(self) -> None:
        ui = StreamableUI()
        ui.done()
        with pytest.raises(StreamClosedError):
            ui.done()

    @pytest.mark.asyncio
    async def test_iteration_yields_all_values(self) -> None:
        ui = StreamableUI(initial="loading")
        ui.update("half")
        ui.done("full")

        seen = [value async for value in ui]
        assert seen == ["loading", "half", "full"]

    @pytest.mark.asyncio
    async def test_iteration_waits_for_producer(self) -> None:
        ui = StreamableUI()

        async def produce() -> None:
            await asyncio.sleep(0)
            ui.update(1)
            await asyncio.sleep(0)
            ui.done(2)

        producer = asyncio.create_task(produce())
        seen = [value async for value in ui]
        await producer
        assert seen == [1, 2]
