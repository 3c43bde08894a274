"""Shared lifecycle for views that show the bag without owning it.

    UNINITIALIZED → LOADING → READY ⇄ READY → UNMOUNTED

READY is re-entered on every notification or poll tick. There is no error
state: a failed read renders an empty bag. Once unmounted, every subscription
and timer is released and any late callback is ignored.
"""

from enum import Enum

import structlog

from storefront.bag.snapshot import BagSnapshot
from storefront.bag.sources import BagSource
from storefront.scheduling.port import Scheduler, TimerHandle
from storefront.utils.subscription import Subscription

logger = structlog.get_logger(__name__)


class ObserverState(Enum):
    UNINITIALIZED = "Uninitialized"
    LOADING = "Loading"
    READY = "Ready"
    UNMOUNTED = "Unmounted"


class BagObserver:
    def __init__(self, source: BagSource, scheduler: Scheduler) -> None:
        self.source = source
        self.scheduler = scheduler
        self.state = ObserverState.UNINITIALIZED
        self._subscriptions: list[Subscription] = []
        self._timers: list[TimerHandle] = []
        self._inflight: TimerHandle | None = None

    @property
    def mounted(self) -> bool:
        return self.state in (ObserverState.LOADING, ObserverState.READY)

    def mount(self) -> "BagObserver":
        if self.mounted:
            return self
        self.state = ObserverState.LOADING
        self.attach()
        self.refresh()
        return self

    def unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        for timer in self._timers:
            timer.cancel()
        if self._inflight is not None:
            self._inflight.cancel()
            self._inflight = None
        self._subscriptions.clear()
        self._timers.clear()
        self.state = ObserverState.UNMOUNTED

    def attach(self) -> None:
        """Register subscriptions and timers. Called once per mount."""

    def render(self, snapshot: BagSnapshot) -> None:
        raise NotImplementedError

    def refresh(self) -> None:
        """Re-read the bag from its source."""
        if not self.mounted:
            return
        if self.source.synchronous:
            self._apply(self.source.load())
            return
        if self._inflight is not None:
            return
        self._inflight = self.scheduler.submit(self.source.load, self._loaded, self._load_failed)

    def _loaded(self, snapshot: BagSnapshot) -> None:
        self._inflight = None
        self._apply(snapshot)

    def _load_failed(self, exc: BaseException) -> None:
        self._inflight = None
        logger.warning("Bag read failed; showing empty bag", observer=type(self).__name__, error=str(exc))
        self._apply(BagSnapshot.empty())

    def _apply(self, snapshot: BagSnapshot) -> None:
        if not self.mounted:
            return
        self.render(snapshot)
        self.state = ObserverState.READY

    def _keep(self, handle):
        if isinstance(handle, Subscription):
            self._subscriptions.append(handle)
        else:
            self._timers.append(handle)
        return handle
