"""Change-signal coalescing.

A pending flag plus a single timer: every signal (re)arms the timer, and
only the timer firing runs the callback. Signals arriving within the
window collapse into one run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class Coalescer:
    """Debounces signals into at most one callback run per quiet window.

    Args:
        callback: Coroutine function run once per coalesced burst.
        window: Quiet period in seconds before the callback runs.
    """

    def __init__(self, callback: Callable[[], Awaitable[Any]], window: float = 0.25) -> None:
        self._callback = callback
        self._window = window
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._pending = False
        self.runs = 0

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def in_flight(self) -> int:
        """Callback runs started and not yet finished."""
        return len(self._tasks)

    def signal(self) -> None:
        """Record a change; (re)arm the timer. Must be called on the loop."""
        loop = asyncio.get_running_loop()
        self._pending = True
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self._window, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._pending = False
        self.runs += 1
        task = asyncio.ensure_future(self._run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self) -> None:
        try:
            await self._callback()
        except Exception:
            logger.exception("Coalesced refresh failed")

    def cancel(self) -> None:
        """Drop any pending signal and cancel every in-flight run."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = False
        for task in list(self._tasks):
            task.cancel()

    async def drain(self) -> None:
        """Wait for every in-flight run."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
