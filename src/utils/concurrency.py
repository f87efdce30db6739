"""Background task ownership for detached post-ingestion work.

Metadata enrichment runs after a document has been accepted, without the
caller waiting on it.  Instead of dropping a bare coroutine on the event
loop, work is spawned through :class:`BackgroundTaskRunner`, which:

1. **Holds a strong reference** to every task until it finishes, so the
   event loop cannot garbage-collect a pending task mid-flight.
2. **Logs the outcome** of every task (completed / failed / cancelled)
   through structlog, so failures are visible even though nobody awaits
   the result.
3. **Exposes completion** through ``pending`` / ``completed`` / ``failed``
   counters and :meth:`join`, which tests, the CLI and app shutdown use to
   wait for outstanding enrichment.

Delivery contract: at most once, best effort.  A spawned task is never
retried; if the process exits before it runs, the work is lost and the
document simply stays without metadata.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import structlog

from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class BackgroundTaskRunner:
    """Spawns and tracks fire-and-forget coroutines."""

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self._logger = logger or _logger
        self._tasks: set[asyncio.Task[Any]] = set()
        self._completed = 0
        self._failed = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def failed(self) -> int:
        return self._failed

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        """Schedule *coro* on the running loop and return its task.

        Must be called from inside a running event loop.
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        self._logger.debug("background_task_spawned", task=name, pending=len(self._tasks))
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        name = task.get_name()

        if task.cancelled():
            self._failed += 1
            self._logger.warning("background_task_cancelled", task=name)
            return

        exc = task.exception()
        if exc is not None:
            self._failed += 1
            self._logger.error(
                "background_task_failed",
                task=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return

        self._completed += 1
        self._logger.debug("background_task_completed", task=name)

    async def join(self) -> None:
        """Wait until every task spawned so far (and any they spawn) is done.

        Task failures are already logged by the done callback and are not
        re-raised here.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.join()
