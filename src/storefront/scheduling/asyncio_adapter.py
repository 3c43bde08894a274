"""Asyncio-backed scheduler.

Timers use the loop's ``call_later``; blocking work runs in the loop's default
executor and its outcome is handed back on the loop thread, so bag state is
only ever touched from the loop.
"""

import asyncio

import structlog

from storefront.scheduling.port import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)


class _Handle(TimerHandle):
    def __init__(self) -> None:
        self._cancelled = False
        self._timer: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.loop = loop or asyncio.get_running_loop()

    def call_later(self, delay, callback) -> TimerHandle:
        handle = _Handle()

        def fire():
            handle._timer = None
            if not handle.cancelled:
                callback()

        handle._timer = self.loop.call_later(delay, fire)
        return handle

    def call_every(self, interval, callback) -> TimerHandle:
        handle = _Handle()

        def tick():
            if handle.cancelled:
                return
            handle._timer = self.loop.call_later(interval, tick)
            try:
                callback()
            except Exception:
                logger.exception("Periodic callback failed", callback=getattr(callback, "__qualname__", repr(callback)))

        handle._timer = self.loop.call_later(interval, tick)
        return handle

    def submit(self, work, on_done, on_error) -> TimerHandle:
        handle = _Handle()
        future = self.loop.run_in_executor(None, work)

        def deliver(fut: asyncio.Future):
            if handle.cancelled or fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                on_error(exc)
            else:
                on_done(fut.result())

        future.add_done_callback(deliver)
        return handle
