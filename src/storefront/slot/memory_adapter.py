"""In-memory durable slots sharing one device storage.

A DeviceStorage stands for one device's key-value store; every MemorySlot
opened on it behaves like one browser tab's handle onto the same key. A write
or removal through one slot notifies the watchers registered through the
*other* slots for that key, never the writer's own.

The storage can be configured at runtime to be unavailable or to enforce a
byte quota, which lets tests exercise persistence failures.
"""

from collections.abc import Callable

from storefront.slot.port import DurableSlot, SlotUnavailableError
from storefront.utils.subscription import Subscription


class DeviceStorage:
    """Configurable fake device storage."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.entries: dict[str, str] = {}
        self.available: bool = True
        self.quota_bytes = quota_bytes
        self._watchers: dict[str, list[tuple[object, Callable]]] = {}

    def configure(self, available: bool = True, quota_bytes: int | None = None) -> None:
        """Configure storage behavior at runtime."""
        self.available = available
        self.quota_bytes = quota_bytes

    def slot(self, key: str) -> "MemorySlot":
        return MemorySlot(self, key)

    def _check_available(self) -> None:
        if not self.available:
            raise SlotUnavailableError("Storage is unavailable")

    def _used_bytes(self, excluding: str) -> int:
        return sum(len(v.encode("utf-8")) for k, v in self.entries.items() if k != excluding)

    def _get(self, key: str) -> str | None:
        self._check_available()
        return self.entries.get(key)

    def _set(self, origin: object, key: str, raw: str) -> None:
        self._check_available()
        if self.quota_bytes is not None:
            needed = self._used_bytes(excluding=key) + len(raw.encode("utf-8"))
            if needed > self.quota_bytes:
                raise SlotUnavailableError(f"Storage quota exceeded ({needed} > {self.quota_bytes} bytes)")
        self.entries[key] = raw
        self._notify(origin, key, raw)

    def _delete(self, origin: object, key: str) -> None:
        self._check_available()
        existed = self.entries.pop(key, None) is not None
        if existed:
            self._notify(origin, key, None)

    def _watch(self, origin: object, key: str, callback: Callable) -> Subscription:
        entry = (origin, callback)
        self._watchers.setdefault(key, []).append(entry)

        def detach():
            watchers = self._watchers.get(key, [])
            if entry in watchers:
                watchers.remove(entry)

        return Subscription(detach)

    def _notify(self, origin: object, key: str, raw: str | None) -> None:
        for watcher_origin, callback in list(self._watchers.get(key, [])):
            if watcher_origin is not origin:
                callback(raw)


class MemorySlot(DurableSlot):
    """One handle onto a DeviceStorage key."""

    def __init__(self, storage: DeviceStorage, key: str) -> None:
        self.storage = storage
        self.key = key

    def read(self) -> str | None:
        return self.storage._get(self.key)

    def write(self, raw: str) -> None:
        self.storage._set(self, self.key, raw)

    def remove(self) -> None:
        self.storage._delete(self, self.key)

    def watch(self, callback: Callable[[str | None], None]) -> Subscription:
        return self.storage._watch(self, self.key, callback)
