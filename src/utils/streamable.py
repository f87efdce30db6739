"""Incrementally-updatable render handle for tool output.

A :class:`StreamableUI` starts with an optional placeholder value, receives
zero or more ``update()`` calls while a tool runs, and is closed exactly once
with ``done()``.  Consumers either read the final ``value`` or iterate the
handle asynchronously to receive each value as it is produced.
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator

from src.utils.errors import StreamClosedError

_UNSET: Any = object()


class StreamableUI:
    """Render handle whose value is pushed by the producer side.

    Iteration yields the current value first and then every subsequent
    update, ending after ``done()``.  Only one consumer should iterate.
    """

    def __init__(self, initial: Any = None) -> None:
        self._value = initial
        self._closed = False
        self._queue: asyncio.Queue[tuple[bool, Any]] = asyncio.Queue()
        self._history: list[Any] = []
        if initial is not None:
            self._push(initial)

    @property
    def value(self) -> Any:
        return self._value

    @property
    def is_done(self) -> bool:
        return self._closed

    @property
    def history(self) -> list[Any]:
        return list(self._history)

    def update(self, value: Any) -> None:
        if self._closed:
            raise StreamClosedError(".update(): UI stream is already closed")
        self._push(value)

    def done(self, value: Any = _UNSET) -> None:
        """Close the handle, optionally setting a final value."""
        if self._closed:
            raise StreamClosedError(".done(): UI stream is already closed")
        if value is not _UNSET:
            self._push(value)
        self._closed = True
        self._queue.put_nowait((True, None))

    def _push(self, value: Any) -> None:
        self._value = value
        self._history.append(value)
        self._queue.put_nowait((False, value))

    async def __aiter__(self) -> AsyncIterator[Any]:
        while True:
            finished, value = await self._queue.get()
            if finished:
                return
            yield value
