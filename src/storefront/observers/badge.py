"""Header badge: how many units are in the bag."""

from storefront.bag.bus import Signal
from storefront.bag.snapshot import BagSnapshot
from storefront.bag.sources import BagSource
from storefront.observers.base import BagObserver
from storefront.scheduling.port import Scheduler

DEFAULT_POLL_INTERVAL = 1.0


class BadgeObserver(BagObserver):
    def __init__(self, source: BagSource, scheduler: Scheduler, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        super().__init__(source, scheduler)
        self.poll_interval = poll_interval
        self.count = 0

    def attach(self) -> None:
        self._keep(self.source.bus.subscribe(Signal.BAG_UPDATED, lambda _change: self.refresh()))
        self._keep(self.source.watch(self.refresh))
        # Fallback for missed notifications.
        if self.source.supports_polling:
            self._keep(self.scheduler.call_every(self.poll_interval, self.refresh))

    def render(self, snapshot: BagSnapshot) -> None:
        self.count = snapshot.count
