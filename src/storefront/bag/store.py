"""BagStore: the one writer of a session's bag.

Each mutation commits in a fixed order: the aggregate changes, the mirror is
overwritten with the new snapshot, and only then is the change broadcast.
A listener reading the payload, or re-reading the mirror, never sees a bag
older than the one just committed. Calls that change nothing commit nothing.
"""

from typing import Any

import structlog
from protean.exceptions import ValidationError

from storefront.bag.bag import Bag
from storefront.bag.bus import EventBus
from storefront.bag.normalization import coerce_quantity, normalize_product, price_sources
from storefront.bag.persistence import BagMirror
from storefront.bag.snapshot import BagSnapshot, ItemView

logger = structlog.get_logger(__name__)


class BagStore:
    def __init__(self, mirror: BagMirror, bus: EventBus, session_id: str | None = None) -> None:
        self.mirror = mirror
        self.bus = bus
        self.bag = Bag.create(session_id=session_id)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def snapshot(self) -> BagSnapshot:
        return self.bag.to_snapshot()

    @property
    def total(self) -> float:
        return self.bag.total_amount()

    @property
    def count(self) -> int:
        return self.bag.item_count()

    # -------------------------------------------------------------------
    # Start-up
    # -------------------------------------------------------------------
    def hydrate(self) -> BagSnapshot:
        """Seed the bag from the mirror. An empty or unreadable mirror leaves it empty.

        A device slot holding repeated or unidentifiable entries is rewritten
        with the merged lines, so its stored length matches what views show.
        """
        lines = self.mirror.hydrate()
        if lines:
            self.bag.restore(lines)
            logger.info("Bag hydrated", items=len(self.bag.items), session_id=self.bag.session_id)
        self.bag.collect_events()

        snapshot = self.snapshot()
        if self.mirror.supports_polling:
            stored = self.mirror.stored_length()
            if stored != len(snapshot):
                logger.info("Rewriting bag slot with merged lines", stored=stored, lines=len(snapshot))
                self.mirror.persist(snapshot)
        return snapshot

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_item(self, product: Any, qty: Any = 1) -> None:
        """Add a product record to the bag.

        Raises:
            ValidationError: the record has no usable product id. The bag is
                left untouched.
        """
        try:
            view = normalize_product(product, qty)
        except ValidationError:
            logger.error("Cannot add product without ID", product=repr(product)[:200])
            raise

        if view.price == 0:
            logger.warning(
                "Product added with price 0",
                product_id=view.id,
                title=view.title,
                price_fields=price_sources(product),
            )

        self.bag.add_line(view)
        self._commit(item=view)

    def remove_item(self, product_id) -> None:
        if self.bag.remove_line(product_id):
            self._commit()

    def set_quantity(self, product_id, qty: Any) -> None:
        """Replace a line's quantity. Unusable or non-positive values remove it."""
        if self.bag.set_quantity(product_id, coerce_quantity(qty) or 0):
            self._commit()

    def clear(self) -> None:
        """Empty the bag and erase its mirror."""
        self.bag.empty()
        self.mirror.clear()
        self.bus.broadcast(self.snapshot(), events=self.bag.collect_events())

    # -------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------
    def _commit(self, item: ItemView | None = None) -> None:
        snapshot = self.snapshot()
        self.mirror.persist(snapshot)
        self.bus.broadcast(snapshot, item=item, events=self.bag.collect_events())
