"""Durable slot port (abstract interface).

A durable slot is one named entry in a device's persistent key-value storage.
The bag mirrors itself into a slot as a JSON array so that views mounted
later, after a reload, or in another tab can read it back. Adapters:
MemorySlot (tests, embedded shells) and JsonFileSlot (flat files on disk).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from storefront.utils.subscription import Subscription


class SlotUnavailableError(Exception):
    """The storage behind a slot could not be read or written."""


class DurableSlot(ABC):
    """Abstract durable slot."""

    key: str

    @abstractmethod
    def read(self) -> str | None:
        """Return the raw stored text, or None when the slot is absent."""
        ...

    @abstractmethod
    def write(self, raw: str) -> None:
        """Overwrite the slot with ``raw``."""
        ...

    @abstractmethod
    def remove(self) -> None:
        """Delete the slot entirely. Removing an absent slot is not an error."""
        ...

    def watch(self, callback: Callable[[str | None], None]) -> Subscription:
        """Be told when another writer changes this slot.

        The callback receives the new raw value (None after removal). Slots
        without a change feed return an inert subscription; readers fall back
        to polling.
        """
        return Subscription.inert()
