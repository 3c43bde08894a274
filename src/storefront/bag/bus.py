"""Bag change fan-out.

Every committed bag mutation is announced on two signals: one carrying the new
snapshot (and the line just added, if any) and one bare "something changed"
signal for listeners that re-read the bag themselves. Both are emitted
immediately and once more after a short delay, to reach listeners that attach
between the first emission and their first read. Delivery is therefore
at-least-once; listeners must treat repeats as idempotent.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from storefront.bag.snapshot import BagSnapshot, ItemView
from storefront.scheduling.port import Scheduler, TimerHandle
from storefront.utils.subscription import Subscription

logger = structlog.get_logger(__name__)

DEFAULT_REBROADCAST_DELAY = 0.05


class Signal(Enum):
    BAG_UPDATED = "bag-updated"
    BAG_UPDATED_WITH_DATA = "bag-updated-with-data"


@dataclass(frozen=True)
class BagChange:
    """Payload delivered to listeners. ``snapshot`` is None on bare signals."""

    snapshot: BagSnapshot | None = None
    item: ItemView | None = None
    events: tuple = ()
    redelivery: bool = False


Listener = Callable[[BagChange], None]


class EventBus:
    def __init__(self, scheduler: Scheduler, rebroadcast_delay: float = DEFAULT_REBROADCAST_DELAY) -> None:
        self.scheduler = scheduler
        self.rebroadcast_delay = rebroadcast_delay
        self._listeners: dict[Signal, list[Listener]] = {signal: [] for signal in Signal}
        self._pending: list[TimerHandle] = []

    def subscribe(self, signal: Signal, listener: Listener) -> Subscription:
        listeners = self._listeners[signal]
        listeners.append(listener)

        def detach():
            if listener in listeners:
                listeners.remove(listener)

        return Subscription(detach)

    def listener_count(self, signal: Signal) -> int:
        return len(self._listeners[signal])

    def broadcast(self, snapshot: BagSnapshot | None, item: ItemView | None = None, events=()) -> None:
        """Announce a committed change now, and once more after the rebroadcast delay."""
        with_data = BagChange(snapshot=snapshot, item=item, events=tuple(events))
        self._emit_pair(with_data)

        def redeliver():
            self._pending = [h for h in self._pending if h is not handle]
            self._emit_pair(BagChange(snapshot=snapshot, item=item, events=tuple(events), redelivery=True))

        handle = self.scheduler.call_later(self.rebroadcast_delay, redeliver)
        self._pending.append(handle)

    def close(self) -> None:
        """Release pending re-emissions and detach every listener."""
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
        for listeners in self._listeners.values():
            listeners.clear()

    def _emit_pair(self, change: BagChange) -> None:
        if change.snapshot is not None:
            self._emit(Signal.BAG_UPDATED_WITH_DATA, change)
        self._emit(Signal.BAG_UPDATED, BagChange(events=change.events, redelivery=change.redelivery))

    def _emit(self, signal: Signal, change: BagChange) -> None:
        listeners = list(self._listeners[signal])
        logger.debug(
            "Bag change emitted",
            signal=signal.value,
            listeners=len(listeners),
            items=len(change.snapshot) if change.snapshot is not None else None,
            redelivery=change.redelivery,
        )
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                logger.exception("Bag listener failed", signal=signal.value)
