from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

log = logging.getLogger("giveaway-engine")

Callback = Callable[[], Awaitable[None]]


class ScheduledCall(Protocol):
    def cancel(self) -> object: ...


class Scheduler(Protocol):
    def schedule_once(self, delay: float, callback: Callback) -> ScheduledCall: ...


class AsyncioScheduler:
    """Run one-shot callbacks on the running event loop after a delay."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule_once(self, delay: float, callback: Callback) -> asyncio.Task[None]:
        async def waiter() -> None:
            try:
                await asyncio.sleep(max(delay, 0))
                await callback()
            except asyncio.CancelledError:
                log.debug("Scheduled callback cancelled")
            except Exception as exc:  # pylint: disable=broad-except
                log.exception("Scheduled callback failed: %s", exc)

        task = asyncio.create_task(waiter())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()


__all__ = ["AsyncioScheduler", "Scheduler", "ScheduledCall", "Callback"]
