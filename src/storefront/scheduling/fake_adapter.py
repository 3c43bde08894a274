"""Deterministic scheduler with a virtual clock.

Nothing runs until the test says so: ``advance(seconds)`` fires due timers in
time order (periodic timers re-arm themselves), and ``run_jobs()`` executes
work handed to ``submit``.
"""

import heapq
import itertools

from storefront.scheduling.port import Scheduler, TimerHandle


class ManualHandle(TimerHandle):
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    def __init__(self) -> None:
        self.now: float = 0.0
        self._timers: list = []
        self._seq = itertools.count()
        self.jobs: list[tuple[ManualHandle, object, object, object]] = []

    def call_later(self, delay, callback) -> TimerHandle:
        handle = ManualHandle()
        heapq.heappush(self._timers, (self.now + delay, next(self._seq), handle, callback, None))
        return handle

    def call_every(self, interval, callback) -> TimerHandle:
        handle = ManualHandle()
        heapq.heappush(self._timers, (self.now + interval, next(self._seq), handle, callback, interval))
        return handle

    def submit(self, work, on_done, on_error) -> TimerHandle:
        handle = ManualHandle()
        self.jobs.append((handle, work, on_done, on_error))
        return handle

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, _, handle, _, _ in self._timers if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that comes due."""
        until = self.now + seconds
        while self._timers and self._timers[0][0] <= until:
            due, _, handle, callback, interval = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            self.now = due
            if interval is not None:
                heapq.heappush(self._timers, (due + interval, next(self._seq), handle, callback, interval))
            callback()
        self.now = until

    def run_jobs(self) -> int:
        """Run submitted work and deliver outcomes. Returns how many jobs ran."""
        ran = 0
        while self.jobs:
            handle, work, on_done, on_error = self.jobs.pop(0)
            if handle.cancelled:
                continue
            try:
                result = work()
            except Exception as exc:
                on_error(exc)
            else:
                on_done(result)
            ran += 1
        return ran
