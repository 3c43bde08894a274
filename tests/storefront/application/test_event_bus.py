"""Tests for bag change fan-out: signal order, re-broadcast and listener isolation."""

from storefront.bag.bus import BagChange, EventBus, Signal
from storefront.bag.snapshot import BagSnapshot, ItemView


def _snapshot(qty=1):
    return BagSnapshot(items=(ItemView(id="p1", title="Apple", name="Apple", price=40.0, qty=qty),))


def _record(bus, log):
    bus.subscribe(Signal.BAG_UPDATED_WITH_DATA, lambda change: log.append(("with-data", change)))
    bus.subscribe(Signal.BAG_UPDATED, lambda change: log.append(("bare", change)))


class TestBroadcastOrder:
    def test_with_data_precedes_bare_signal(self, bus):
        log = []
        _record(bus, log)
        bus.broadcast(_snapshot())
        assert [name for name, _ in log] == ["with-data", "bare"]

    def test_with_data_carries_snapshot_and_item(self, bus):
        log = []
        _record(bus, log)
        snapshot = _snapshot()
        bus.broadcast(snapshot, item=snapshot.items[0])
        change = log[0][1]
        assert change.snapshot == snapshot
        assert change.item.id == "p1"
        assert change.redelivery is False

    def test_bare_signal_has_no_snapshot(self, bus):
        log = []
        _record(bus, log)
        bus.broadcast(_snapshot())
        assert log[1][1].snapshot is None

    def test_without_snapshot_only_bare_signal(self, bus):
        log = []
        _record(bus, log)
        bus.broadcast(None)
        assert [name for name, _ in log] == ["bare"]


class TestRebroadcast:
    def test_repeats_once_after_delay(self, bus, scheduler):
        log = []
        _record(bus, log)
        bus.broadcast(_snapshot())

        scheduler.advance(0.04)
        assert len(log) == 2

        scheduler.advance(0.02)
        assert [name for name, _ in log] == ["with-data", "bare", "with-data", "bare"]
        assert log[2][1].redelivery is True
        assert log[3][1].redelivery is True

        scheduler.advance(1.0)
        assert len(log) == 4

    def test_listener_attached_late_still_hears_the_change(self, bus, scheduler):
        snapshot = _snapshot(qty=3)
        bus.broadcast(snapshot)

        late = []
        bus.subscribe(Signal.BAG_UPDATED_WITH_DATA, late.append)
        scheduler.advance(0.05)

        assert len(late) == 1
        assert late[0].snapshot == snapshot

    def test_custom_delay(self, scheduler):
        bus = EventBus(scheduler, rebroadcast_delay=0.5)
        heard = []
        bus.subscribe(Signal.BAG_UPDATED, heard.append)
        bus.broadcast(_snapshot())
        scheduler.advance(0.49)
        assert len(heard) == 1
        scheduler.advance(0.02)
        assert len(heard) == 2


class TestListeners:
    def test_failing_listener_does_not_stop_fan_out(self, bus):
        heard = []

        def broken(change):
            raise RuntimeError("boom")

        bus.subscribe(Signal.BAG_UPDATED_WITH_DATA, broken)
        bus.subscribe(Signal.BAG_UPDATED_WITH_DATA, heard.append)
        bus.subscribe(Signal.BAG_UPDATED, heard.append)

        bus.broadcast(_snapshot())
        assert len(heard) == 2

    def test_cancelled_subscription_hears_nothing(self, bus):
        heard = []
        subscription = bus.subscribe(Signal.BAG_UPDATED, heard.append)
        subscription.cancel()
        bus.broadcast(_snapshot())
        assert heard == []
        assert bus.listener_count(Signal.BAG_UPDATED) == 0

    def test_cancel_is_idempotent(self, bus):
        subscription = bus.subscribe(Signal.BAG_UPDATED, lambda change: None)
        subscription.cancel()
        subscription.cancel()
        assert subscription.active is False

    def test_listener_can_unsubscribe_during_delivery(self, bus):
        heard = []
        holder = {}

        def once(change):
            heard.append(change)
            holder["sub"].cancel()

        holder["sub"] = bus.subscribe(Signal.BAG_UPDATED, once)
        bus.broadcast(_snapshot())
        bus.broadcast(_snapshot())
        assert len(heard) == 1


class TestClose:
    def test_close_drops_pending_rebroadcast(self, bus, scheduler):
        bus.broadcast(_snapshot())
        assert scheduler.pending_timers == 1
        bus.close()
        assert scheduler.pending_timers == 0

    def test_close_detaches_listeners(self, bus):
        bus.subscribe(Signal.BAG_UPDATED, lambda change: None)
        bus.close()
        assert bus.listener_count(Signal.BAG_UPDATED) == 0


def test_change_defaults():
    change = BagChange()
    assert change.snapshot is None
    assert change.item is None
    assert change.events == ()
    assert change.redelivery is False
