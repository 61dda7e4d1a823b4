"""
Cancellable one-shot timers driven by the frame loop.

The loop calls `FrameScheduler.poll()` once per frame; due callbacks run on
that same thread, so nothing blocks while a countdown is waiting.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a pending callback. `cancel()` may be called any number of times."""

    def __init__(self, due: float, callback: Callable[[], None], seq: int) -> None:
        self.due = due
        self._callback: Optional[Callable[[], None]] = callback
        self._seq = seq
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        if self._done:
            return
        self._cancelled = True
        self._callback = None

    def _run(self) -> None:
        callback = self._callback
        self._done = True
        self._callback = None
        if callback is not None:
            callback()


class FrameScheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._tasks: List[ScheduledTask] = []
        self._seq = 0

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        return self.call_at(self._clock() + float(delay), callback)

    def call_at(self, due: float, callback: Callable[[], None]) -> ScheduledTask:
        """Run `callback` on the first poll at or after clock time `due`."""
        self._seq += 1
        task = ScheduledTask(float(due), callback, self._seq)
        self._tasks.append(task)
        return task

    def pending(self) -> int:
        return sum(1 for t in self._tasks if t.active)

    def poll(self) -> int:
        """Run every task that is due. Returns how many callbacks ran."""
        now = self._clock()
        self._tasks = [t for t in self._tasks if t.active]
        due = sorted((t for t in self._tasks if t.due <= now), key=lambda t: (t.due, t._seq))
        ran = 0
        for task in due:
            # An earlier callback in this batch may have cancelled it.
            if not task.active:
                continue
            task._run()
            ran += 1
        self._tasks = [t for t in self._tasks if t.active]
        return ran

    def cancel_all(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []
