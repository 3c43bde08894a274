"""The bag as views and product UIs see it.

A BagSource pairs the session's BagStore with the mirror that backs it. Which
mirror that is, the guest's durable slot or the account's remote cart, is
decided once when the session opens; nothing downstream asks whether the
shopper is signed in.
"""

from collections.abc import Callable
from typing import Any

from storefront.bag.bus import EventBus
from storefront.bag.persistence import BagMirror, PersistenceBridge, RemoteBagMirror
from storefront.bag.snapshot import BagSnapshot
from storefront.bag.store import BagStore
from storefront.remote.port import OrderService
from storefront.slot.port import DurableSlot
from storefront.utils.subscription import Subscription


class BagSource:
    def __init__(self, store: BagStore, mirror: BagMirror) -> None:
        self.store = store
        self.mirror = mirror

    @property
    def bus(self) -> EventBus:
        return self.store.bus

    @property
    def synchronous(self) -> bool:
        """Reads complete immediately and may run on the UI loop."""
        return self.mirror.synchronous

    @property
    def supports_polling(self) -> bool:
        """Reads are cheap enough to repeat on a short timer."""
        return self.mirror.supports_polling

    # Reads -------------------------------------------------------------
    def load(self) -> BagSnapshot:
        """The mirrored bag: what a view that missed every notification should show.

        Once a mirror write has failed the in-memory bag is the only
        trustworthy copy, so it is served instead until a write succeeds.
        """
        if self.mirror.degraded:
            return self.store.snapshot()
        return self.mirror.read_snapshot()

    def stored_length(self) -> int:
        if self.mirror.degraded:
            return len(self.store.snapshot())
        return self.mirror.stored_length()

    def snapshot(self) -> BagSnapshot:
        return self.store.snapshot()

    def watch(self, callback: Callable[[], None]) -> Subscription:
        """Changes made by another tab on this device."""
        return self.mirror.watch(callback)

    # Writes ------------------------------------------------------------
    def add_item(self, product: Any, qty: Any = 1) -> None:
        self.store.add_item(product, qty)

    def remove_item(self, product_id) -> None:
        self.store.remove_item(product_id)

    def set_quantity(self, product_id, qty: Any) -> None:
        self.store.set_quantity(product_id, qty)

    def clear(self) -> None:
        self.store.clear()


def open_guest_bag(slot: DurableSlot, bus: EventBus, session_id: str | None = None) -> BagSource:
    """A bag mirrored into this device's durable slot, hydrated from it."""
    mirror = PersistenceBridge(slot)
    store = BagStore(mirror, bus, session_id=session_id)
    store.hydrate()
    return BagSource(store, mirror)


def open_account_bag(order_service: OrderService, bus: EventBus) -> BagSource:
    """A bag mirrored into the signed-in shopper's remote cart, hydrated from it."""
    mirror = RemoteBagMirror(order_service)
    store = BagStore(mirror, bus)
    store.hydrate()
    return BagSource(store, mirror)
