"""Bag panel: the line items and total beside the product browser.

The panel takes the snapshot carried on a notification when there is one and
re-reads its source otherwise. A short poll compares only the stored line
count against what is shown; it exists to catch a dropped notification, and a
mismatch triggers a full re-read.
"""

import structlog

from storefront.bag.bus import BagChange, Signal
from storefront.bag.snapshot import BagSnapshot, ItemView
from storefront.bag.sources import BagSource
from storefront.observers.base import BagObserver
from storefront.scheduling.port import Scheduler

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 0.2


class PanelObserver(BagObserver):
    def __init__(self, source: BagSource, scheduler: Scheduler, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        super().__init__(source, scheduler)
        self.poll_interval = poll_interval
        self.snapshot = BagSnapshot.empty()

    @property
    def items(self) -> tuple[ItemView, ...]:
        return self.snapshot.items

    @property
    def total(self) -> float:
        return self.snapshot.total

    def attach(self) -> None:
        bus = self.source.bus
        self._keep(bus.subscribe(Signal.BAG_UPDATED_WITH_DATA, self._on_change_with_data))
        self._keep(bus.subscribe(Signal.BAG_UPDATED, self._on_change))
        self._keep(self.source.watch(self.refresh))
        if self.source.supports_polling:
            self._keep(self.scheduler.call_every(self.poll_interval, self.poll))

    def render(self, snapshot: BagSnapshot) -> None:
        self.snapshot = snapshot

    def _on_change_with_data(self, change: BagChange) -> None:
        if change.snapshot is not None:
            self._apply(change.snapshot)

    def _on_change(self, change: BagChange) -> None:
        # Remote sources always announce with data.
        if self.source.synchronous:
            self.refresh()

    def poll(self) -> None:
        if not self.mounted:
            return
        stored = self.source.stored_length()
        if stored != len(self.snapshot):
            logger.debug("Bag panel poll detected change", shown=len(self.snapshot), stored=stored)
            self.refresh()
