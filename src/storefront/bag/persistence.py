"""Bag mirrors: where a bag is kept between page loads.

A mirror receives every committed snapshot from the BagStore (its only
writer) and answers reads for views that do not hold the store itself.

- PersistenceBridge mirrors a guest bag into a durable slot on the device.
- RemoteBagMirror mirrors an account bag into the remote cart endpoint.

Mirror failures are never fatal: they are logged, the in-memory bag stays
authoritative for the rest of the session, and reads degrade to an empty bag.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Callable

import structlog

from storefront.bag.normalization import normalize_stored_entry
from storefront.bag.snapshot import BagSnapshot, ItemView
from storefront.remote.port import OrderService, OrderServiceError
from storefront.slot.port import DurableSlot, SlotUnavailableError
from storefront.utils.subscription import Subscription

logger = structlog.get_logger(__name__)


def _lines_from_entries(entries, source: str) -> list[ItemView]:
    lines = []
    for entry in entries:
        line = normalize_stored_entry(entry)
        if line is None:
            logger.warning("Skipping stored bag entry without product id", source=source, entry=repr(entry)[:200])
            continue
        lines.append(line)
    return lines


def merge_lines(lines: list[ItemView]) -> BagSnapshot:
    """Collapse repeated product ids into one line, keeping first-seen order."""
    merged: dict[str, ItemView] = {}
    for line in lines:
        existing = merged.get(line.id)
        if existing is None:
            merged[line.id] = line
        else:
            merged[line.id] = ItemView(
                id=existing.id,
                title=existing.title,
                name=existing.name,
                price=existing.price,
                qty=existing.qty + line.qty,
            )
    return BagSnapshot(items=tuple(merged.values()))


class BagMirror(ABC):
    """Abstract bag mirror."""

    synchronous: bool = True
    supports_polling: bool = True
    # Set after a failed write: the mirror no longer reflects the in-memory bag.
    degraded: bool = False

    @abstractmethod
    def hydrate(self) -> list[ItemView]:
        """Lines to seed the in-memory bag with at start-up."""
        ...

    @abstractmethod
    def persist(self, snapshot: BagSnapshot) -> None:
        """Overwrite the mirrored bag with ``snapshot``."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Erase the mirrored bag."""
        ...

    def read_snapshot(self) -> BagSnapshot:
        """Current mirrored bag, as an observer would see it."""
        return merge_lines(self.hydrate())

    def stored_length(self) -> int:
        return len(self.read_snapshot())

    def watch(self, callback: Callable[[], None]) -> Subscription:
        return Subscription.inert()


class PersistenceBridge(BagMirror):
    """Mirrors a guest bag into a durable slot as a JSON array."""

    def __init__(self, slot: DurableSlot) -> None:
        self.slot = slot

    def _read_entries(self) -> list:
        try:
            raw = self.slot.read()
        except SlotUnavailableError as exc:
            logger.warning("Bag slot read failed", key=self.slot.key, error=str(exc))
            return []
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed bag slot", key=self.slot.key)
            return []
        if not isinstance(entries, list):
            logger.warning("Ignoring bag slot that is not a list", key=self.slot.key)
            return []
        return entries

    def hydrate(self) -> list[ItemView]:
        return _lines_from_entries(self._read_entries(), source=self.slot.key)

    def persist(self, snapshot: BagSnapshot) -> None:
        try:
            self.slot.write(json.dumps(snapshot.to_records()))
        except SlotUnavailableError as exc:
            self.degraded = True
            logger.warning(
                "Bag slot write failed; keeping in-memory bag",
                key=self.slot.key,
                items=len(snapshot),
                error=str(exc),
            )
        else:
            self.degraded = False

    def clear(self) -> None:
        try:
            self.slot.remove()
        except SlotUnavailableError as exc:
            self.degraded = True
            logger.warning("Bag slot removal failed", key=self.slot.key, error=str(exc))
        else:
            self.degraded = False

    def stored_length(self) -> int:
        return len(self._read_entries())

    def watch(self, callback: Callable[[], None]) -> Subscription:
        return self.slot.watch(lambda _raw: callback())


class RemoteBagMirror(BagMirror):
    """Mirrors an account bag into the remote cart endpoint."""

    synchronous = False
    supports_polling = False

    def __init__(self, order_service: OrderService) -> None:
        self.order_service = order_service

    def hydrate(self) -> list[ItemView]:
        try:
            entries = self.order_service.fetch_bag()
        except OrderServiceError as exc:
            logger.warning("Remote bag read failed", error=str(exc), status_code=exc.status_code)
            return []
        return _lines_from_entries(entries, source="remote")

    def persist(self, snapshot: BagSnapshot) -> None:
        try:
            self.order_service.replace_bag(snapshot.to_records())
        except OrderServiceError as exc:
            self.degraded = True
            logger.warning(
                "Remote bag write failed; keeping in-memory bag",
                items=len(snapshot),
                error=str(exc),
                status_code=exc.status_code,
            )
        else:
            self.degraded = False

    def clear(self) -> None:
        try:
            self.order_service.replace_bag([])
        except OrderServiceError as exc:
            self.degraded = True
            logger.warning("Remote bag clear failed", error=str(exc), status_code=exc.status_code)
        else:
            self.degraded = False
