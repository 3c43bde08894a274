import pytest
from protean.integrations.pytest import DomainFixture

from storefront.bag.bus import EventBus
from storefront.bag.sources import open_guest_bag
from storefront.remote.fake_adapter import FakeOrderService
from storefront.scheduling.fake_adapter import ManualScheduler
from storefront.slot.memory_adapter import DeviceStorage


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def device():
    """One device's storage, shared by every tab opened in a test."""
    return DeviceStorage()


@pytest.fixture()
def slot(device):
    return device.slot("bag")


@pytest.fixture()
def bus(scheduler):
    return EventBus(scheduler, rebroadcast_delay=0.05)


@pytest.fixture()
def guest_bag(slot, bus):
    return open_guest_bag(slot, bus)


@pytest.fixture()
def order_service():
    return FakeOrderService()
