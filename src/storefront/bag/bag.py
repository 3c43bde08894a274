"""Bag aggregate: the shopper's in-memory bag of line items.

Lines are keyed by product id: adding a product that is already present grows
its line instead of adding a second one, and a quantity that would drop to
zero removes the line. Prices are normalized before they reach the aggregate.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.bag.events import (
    BagCleared,
    BagHydrated,
    BagItemAdded,
    BagItemRemoved,
    BagQuantityUpdated,
)
from storefront.bag.normalization import normalize_id
from storefront.bag.snapshot import BagSnapshot, ItemView
from storefront.domain import storefront


@storefront.entity(part_of="Bag")
class LineItem:
    product_id = Identifier(required=True)
    title = String(max_length=500)
    name = String(max_length=500)
    price = Float(min_value=0.0, default=0.0)
    qty = Integer(required=True, min_value=1)

    def to_view(self) -> ItemView:
        return ItemView(
            id=str(self.product_id),
            title=self.title or str(self.product_id),
            name=self.name or self.title or str(self.product_id),
            price=float(self.price or 0.0),
            qty=int(self.qty),
        )


@storefront.aggregate
class Bag:
    session_id = String(max_length=255)  # None for account bags
    items = HasMany(LineItem)
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        seen = set()
        for item in self.items:
            key = str(item.product_id)
            if key in seen:
                raise ValidationError({"items": [f"Product {key} appears on more than one line"]})
            seen.add(key)

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, session_id=None):
        return cls(session_id=session_id, updated_at=datetime.now(UTC))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def line_for(self, product_id):
        key = normalize_id(product_id)
        if key is None:
            return None
        return next((i for i in self.items if str(i.product_id) == key), None)

    def total_amount(self) -> float:
        return sum(float(i.price or 0.0) * i.qty for i in self.items)

    def item_count(self) -> int:
        return sum(i.qty for i in self.items)

    def to_snapshot(self) -> BagSnapshot:
        return BagSnapshot(items=tuple(i.to_view() for i in self.items))

    def collect_events(self) -> tuple:
        """Hand over the events raised since the last call and forget them.

        The bag is never saved through a repository, so nothing else drains
        them; the store publishes them with each commit instead.
        """
        events = tuple(self._events)
        self._events.clear()
        return events

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_line(self, view: ItemView):
        """Add a normalized line, or grow the existing line for the same product."""
        existing = self.line_for(view.id)
        if existing:
            existing.qty += view.qty
            line = existing
        else:
            line = LineItem(
                product_id=view.id,
                title=view.title,
                name=view.name,
                price=view.price,
                qty=view.qty,
            )
            self.add_items(line)

        self.updated_at = datetime.now(UTC)

        self.raise_(
            BagItemAdded(
                bag_id=str(self.id),
                product_id=view.id,
                title=view.title,
                price=view.price,
                quantity=view.qty,
                line_quantity=line.qty,
            )
        )
        return line

    def remove_line(self, product_id) -> bool:
        """Remove the line for ``product_id``. Returns False when there is none."""
        line = self.line_for(product_id)
        if line is None:
            return False

        self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(BagItemRemoved(bag_id=str(self.id), product_id=str(line.product_id)))
        return True

    def set_quantity(self, product_id, qty: int) -> bool:
        """Replace a line's quantity; zero or less removes the line."""
        if qty <= 0:
            return self.remove_line(product_id)

        line = self.line_for(product_id)
        if line is None:
            return False

        previous = line.qty
        if previous == qty:
            return False

        line.qty = qty
        self.updated_at = datetime.now(UTC)

        self.raise_(
            BagQuantityUpdated(
                bag_id=str(self.id),
                product_id=str(line.product_id),
                previous_quantity=previous,
                new_quantity=qty,
            )
        )
        return True

    def empty(self) -> int:
        """Drop every line. Returns how many lines were removed."""
        removed = len(self.items)
        for line in list(self.items):
            self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(BagCleared(bag_id=str(self.id), items_removed_count=removed))
        return removed

    def restore(self, views) -> int:
        """Seed the bag from mirrored lines, merging any repeated product ids."""
        restored = 0
        for view in views:
            existing = self.line_for(view.id)
            if existing:
                existing.qty += view.qty
                continue
            self.add_items(
                LineItem(
                    product_id=view.id,
                    title=view.title,
                    name=view.name,
                    price=view.price,
                    qty=view.qty,
                )
            )
            restored += 1

        self.updated_at = datetime.now(UTC)

        self.raise_(BagHydrated(bag_id=str(self.id), items_restored_count=restored))
        return restored
