"""Scheduler port (abstract interface).

The bag runs on one cooperative loop: timers and notification handlers
interleave but never run in parallel. The scheduler is that loop's timer and
off-loop-work facility. Adapters: AsyncioScheduler (production) and
ManualScheduler (virtual clock for tests).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class TimerHandle(ABC):
    """A scheduled callback that can be released before it fires."""

    @abstractmethod
    def cancel(self) -> None: ...

    @property
    @abstractmethod
    def cancelled(self) -> bool: ...


class Scheduler(ABC):
    """Abstract scheduler."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], Any]) -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds until cancelled."""
        ...

    @abstractmethod
    def submit(
        self,
        work: Callable[[], Any],
        on_done: Callable[[Any], Any],
        on_error: Callable[[BaseException], Any],
    ) -> TimerHandle:
        """Run blocking ``work`` off the loop; deliver its outcome back on the loop.

        Exactly one of ``on_done``/``on_error`` is called, unless the handle
        was cancelled first.
        """
        ...
