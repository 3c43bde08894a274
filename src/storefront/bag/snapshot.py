"""Immutable views of the bag handed to observers and listeners."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ItemView:
    """One product's presence in the bag, fully normalized."""

    id: str
    title: str
    name: str
    price: float
    qty: int

    @property
    def subtotal(self) -> float:
        return self.price * self.qty

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "name": self.name,
            "price": self.price,
            "qty": self.qty,
        }


@dataclass(frozen=True)
class BagSnapshot:
    """The full ordered bag contents.

    ``total`` and ``count`` are derived from ``items`` on every read; a
    snapshot never stores them.
    """

    items: tuple[ItemView, ...] = ()

    @classmethod
    def empty(cls) -> "BagSnapshot":
        return cls(items=())

    @property
    def total(self) -> float:
        return sum(item.price * item.qty for item in self.items)

    @property
    def count(self) -> int:
        return sum(item.qty for item in self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def find(self, product_id) -> ItemView | None:
        key = str(product_id)
        return next((item for item in self.items if item.id == key), None)

    def to_records(self) -> list[dict]:
        return [item.to_record() for item in self.items]
