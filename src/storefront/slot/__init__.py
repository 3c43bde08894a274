"""Durable slot factory.

Provides build_slot() to pick an implementation from settings:
- MemorySlot over a fresh DeviceStorage (default, tests and embedded shells)
- JsonFileSlot for a storage directory on disk
"""

from storefront.config import Settings
from storefront.slot.json_file_adapter import JsonFileSlot
from storefront.slot.memory_adapter import DeviceStorage, MemorySlot
from storefront.slot.port import DurableSlot, SlotUnavailableError


def build_slot(settings: Settings) -> DurableSlot:
    """Return the durable slot configured by ``settings.slot_backend``."""
    if settings.slot_backend == "file":
        return JsonFileSlot(settings.storage_dir, settings.slot_key)
    if settings.slot_backend == "memory":
        return DeviceStorage().slot(settings.slot_key)
    raise ValueError(f"Unknown slot backend: {settings.slot_backend}")


__all__ = ["DeviceStorage", "DurableSlot", "JsonFileSlot", "MemorySlot", "SlotUnavailableError", "build_slot"]
