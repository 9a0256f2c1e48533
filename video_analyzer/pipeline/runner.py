"""Background execution of analysis pipelines."""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from functools import partial
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

CancelHook = Callable[[str], Awaitable[Any]]


class TaskRunner:
    """
    Fire-and-forget scheduler for pipeline runs.

    Each run becomes an ``asyncio.Task`` that the runner holds on to until it
    finishes, so it can be cancelled individually or all together at shutdown.
    ``on_cancelled`` is awaited with the task id after any cancelled run,
    including one cancelled before its coroutine got to execute.
    """

    def __init__(self, on_cancelled: CancelHook | None = None) -> None:
        self.on_cancelled = on_cancelled
        self._running: dict[str, asyncio.Task] = {}
        self._cleanups: set[asyncio.Task] = set()

    @property
    def active(self) -> int:
        return len(self._running)

    def spawn(self, task_id: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Schedule ``coro`` for ``task_id`` without waiting for it."""
        if task_id in self._running:
            coro.close()
            raise ValueError(f"Task {task_id} is already running")

        background = asyncio.create_task(coro, name=f"analysis-{task_id}")
        self._running[task_id] = background
        background.add_done_callback(partial(self._on_done, task_id))

        logger.debug("Background task spawned", task_id=task_id, active=self.active)
        return background

    def cancel(self, task_id: str) -> bool:
        """Request cancellation of a running task. Returns False if not running."""
        background = self._running.get(task_id)
        if background is None or background.done():
            return False
        return background.cancel()

    async def shutdown(self) -> None:
        """Cancel every in-flight task and wait for them to unwind."""
        pending = list(self._running.values())
        if pending:
            logger.info("Cancelling in-flight analyses", count=len(pending))
            for background in pending:
                background.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if self._cleanups:
            await asyncio.gather(*list(self._cleanups), return_exceptions=True)

    def _on_done(self, task_id: str, background: asyncio.Task) -> None:
        self._running.pop(task_id, None)

        if background.cancelled():
            logger.info("Background task cancelled", task_id=task_id)
            if self.on_cancelled is not None:
                cleanup = background.get_loop().create_task(
                    self._record_cancellation(task_id),
                    name=f"cancelled-{task_id}",
                )
                self._cleanups.add(cleanup)
                cleanup.add_done_callback(self._cleanups.discard)
            return

        exc = background.exception()
        if exc is not None:
            logger.error(
                "Background task crashed",
                task_id=task_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def _record_cancellation(self, task_id: str) -> None:
        try:
            await self.on_cancelled(task_id)
        except Exception as exc:
            logger.error(
                "Failed to record cancellation",
                task_id=task_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
