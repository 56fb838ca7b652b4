"""
Cancellable timers for the renewal schedule.

The Session Manager holds at most one handle. Re-arming cancels the
previous handle first; cancellation is synchronous.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

type TimerAction = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """
    Schedules an async action after a delay (seconds).

    asyncio's loop handles already satisfy TimerHandle.
    """

    def call_later(self, delay: float, action: TimerAction) -> TimerHandle: ...


class AsyncioScheduler:
    """
    Scheduler over the running event loop.

    Example:
        scheduler = AsyncioScheduler()
        handle = scheduler.call_later(3300.0, renew)
        handle.cancel()
    """

    __slots__ = ("_tasks",)

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def call_later(self, delay: float, action: TimerAction) -> TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self._spawn, action)

    def _spawn(self, action: TimerAction) -> None:
        task = asyncio.ensure_future(action())
        # Keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for actions already started by fired timers."""
        if self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)


__all__ = (
    "TimerAction",
    "TimerHandle",
    "Scheduler",
    "AsyncioScheduler",
)
