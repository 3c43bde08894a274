"""Detachable listener registrations shared by the bus and the durable slots."""

from collections.abc import Callable


class Subscription:
    """Handle returned when a listener attaches. ``cancel()`` is idempotent."""

    def __init__(self, detach: Callable[[], None] | None = None) -> None:
        self._detach = detach
        self.active = detach is not None

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        detach, self._detach = self._detach, None
        detach()

    @classmethod
    def inert(cls) -> "Subscription":
        """A subscription for sources that never notify."""
        return cls(None)
