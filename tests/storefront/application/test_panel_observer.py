"""Tests for the bag panel: notification payloads, polling and lifecycle."""

import json

import pytest

from storefront.bag.bus import EventBus, Signal
from storefront.bag.snapshot import BagSnapshot, ItemView
from storefront.bag.sources import open_account_bag, open_guest_bag
from storefront.observers.base import ObserverState
from storefront.observers.panel import PanelObserver
from storefront.remote.fake_adapter import FakeOrderService

APPLE = {"id": "p1", "title": "Apple", "price": 40}
BANANA = {"id": "p2", "title": "Banana", "price": 10}


@pytest.fixture()
def panel(guest_bag, scheduler):
    return PanelObserver(guest_bag, scheduler, poll_interval=0.2)


class TestMount:
    def test_starts_uninitialized(self, panel):
        assert panel.state == ObserverState.UNINITIALIZED
        assert panel.items == ()

    def test_mount_shows_stored_bag(self, guest_bag, panel):
        guest_bag.add_item(APPLE, 2)
        panel.mount()
        assert [(i.id, i.qty) for i in panel.items] == [("p1", 2)]
        assert panel.total == 80.0
        assert panel.state == ObserverState.READY

    def test_mount_twice_is_a_no_op(self, guest_bag, panel):
        panel.mount()
        panel.mount()
        assert guest_bag.bus.listener_count(Signal.BAG_UPDATED_WITH_DATA) == 1


class TestSameTabChanges:
    def test_add_shows_new_line_immediately(self, guest_bag, panel):
        panel.mount()
        guest_bag.add_item(APPLE, 1)
        guest_bag.add_item(BANANA, 2)
        assert [(i.id, i.qty) for i in panel.items] == [("p1", 1), ("p2", 2)]
        assert panel.total == 60.0

    def test_repeated_delivery_is_idempotent(self, guest_bag, panel, scheduler):
        panel.mount()
        guest_bag.add_item(APPLE, 1)
        shown = panel.snapshot
        scheduler.advance(0.05)
        assert panel.snapshot == shown

    def test_clear_empties_panel(self, guest_bag, panel):
        panel.mount()
        guest_bag.add_item(APPLE, 1)
        guest_bag.clear()
        assert panel.items == ()
        assert panel.total == 0


class TestPolling:
    def test_poll_refreshes_when_line_count_differs(self, device, panel, scheduler):
        panel.mount()
        device.entries["bag"] = json.dumps([{"id": "p9", "price": 5, "qty": 1}])

        scheduler.advance(0.2)

        assert [i.id for i in panel.items] == ["p9"]

    def test_poll_ignores_quantity_only_drift(self, guest_bag, device, panel, scheduler):
        guest_bag.add_item(APPLE, 1)
        panel.mount()
        scheduler.advance(0.1)
        device.entries["bag"] = json.dumps([{"id": "p1", "title": "Apple", "price": 40, "qty": 7}])

        scheduler.advance(0.2)

        assert panel.items[0].qty == 1

    def test_legacy_slot_does_not_keep_the_poll_reloading(self, device, bus, scheduler, monkeypatch):
        slot = device.slot("bag")
        slot.write(json.dumps([{"id": "p1", "price": 5, "qty": 1}, {"id": "p1", "price": 5, "qty": 1}, {"title": "noid"}]))
        source = open_guest_bag(slot, bus)
        loads = []
        original_load = source.load
        monkeypatch.setattr(source, "load", lambda: loads.append(1) or original_load())
        panel = PanelObserver(source, scheduler, poll_interval=0.2).mount()

        scheduler.advance(2.0)

        assert len(loads) == 1
        assert [(i.id, i.qty) for i in panel.items] == [("p1", 2)]

    def test_poll_stops_after_unmount(self, device, panel, scheduler):
        panel.mount()
        panel.unmount()
        device.entries["bag"] = json.dumps([{"id": "p9", "price": 5, "qty": 1}])

        scheduler.advance(1.0)

        assert panel.items == ()


class TestCrossTab:
    def test_other_tab_add_reaches_panel(self, guest_bag, device, scheduler):
        other_tab = open_guest_bag(device.slot("bag"), EventBus(scheduler))
        panel = PanelObserver(other_tab, scheduler).mount()

        guest_bag.add_item(APPLE, 2)

        assert [(i.id, i.qty) for i in panel.items] == [("p1", 2)]

    def test_other_tab_store_keeps_its_own_bag(self, guest_bag, device, scheduler):
        other_tab = open_guest_bag(device.slot("bag"), EventBus(scheduler))
        guest_bag.add_item(APPLE, 2)
        assert len(other_tab.snapshot()) == 0


class TestAccountPanel:
    def test_applies_payload_snapshot(self, bus, scheduler):
        source = open_account_bag(FakeOrderService(), bus)
        panel = PanelObserver(source, scheduler).mount()
        scheduler.run_jobs()
        payload = BagSnapshot(items=(ItemView(id="p5", title="Lamp", name="Lamp", price=120.0, qty=1),))

        bus.broadcast(payload)

        assert panel.snapshot == payload

    def test_payload_applied_without_refetch(self, bus, scheduler):
        service = FakeOrderService()
        source = open_account_bag(service, bus)
        panel = PanelObserver(source, scheduler).mount()
        scheduler.run_jobs()
        fetches = sum(1 for call in service.calls if call["method"] == "fetch_bag")

        source.add_item(APPLE, 1)

        assert [i.id for i in panel.items] == ["p1"]
        assert scheduler.jobs == []
        assert sum(1 for call in service.calls if call["method"] == "fetch_bag") == fetches

    def test_load_error_renders_empty_bag(self, bus, scheduler, monkeypatch):
        source = open_account_bag(FakeOrderService(bag=[{"id": "p1", "qty": 1}]), bus)

        def broken_load():
            raise RuntimeError("connection reset")

        monkeypatch.setattr(source, "load", broken_load)
        panel = PanelObserver(source, scheduler).mount()
        scheduler.run_jobs()

        assert panel.items == ()
        assert panel.state == ObserverState.READY
