"""Shopper session: composition root for one shopper's bag.

Wires the event bus, the mirror chosen for this shopper (device slot for
guests, remote cart for signed-in accounts), the store, and the views. The
choice is made here, once; everything built from the session is unaware of it.

Bag objects are protean domain objects, so mutations must run inside
``storefront.domain_context()``.
"""

from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from storefront.bag.bus import EventBus
from storefront.bag.sources import BagSource, open_account_bag, open_guest_bag
from storefront.checkout.review import CheckoutReview, PromoOffer
from storefront.config import Settings
from storefront.observers.badge import BadgeObserver
from storefront.observers.panel import PanelObserver
from storefront.remote import build_order_service
from storefront.remote.port import OrderService
from storefront.scheduling.port import Scheduler
from storefront.slot import build_slot
from storefront.slot.port import DurableSlot
from storefront.utils.logging import bind_session, clear_context

logger = structlog.get_logger(__name__)


@dataclass
class ShopperSession:
    settings: Settings
    scheduler: Scheduler
    bus: EventBus
    bag: BagSource
    order_service: OrderService
    authenticated: bool = False
    offers: tuple[PromoOffer, ...] = ()
    session_id: str = field(default_factory=lambda: uuid4().hex)

    def badge(self) -> BadgeObserver:
        return BadgeObserver(self.bag, self.scheduler, poll_interval=self.settings.badge_poll_interval)

    def panel(self) -> PanelObserver:
        return PanelObserver(self.bag, self.scheduler, poll_interval=self.settings.panel_poll_interval)

    def checkout(self) -> CheckoutReview:
        return CheckoutReview(self.bag, self.scheduler, self.order_service, offers=self.offers)

    def close(self) -> None:
        self.bus.close()
        self.order_service.close()
        clear_context()


def open_session(
    settings: Settings,
    scheduler: Scheduler,
    *,
    slot: DurableSlot | None = None,
    order_service: OrderService | None = None,
    authenticated: bool = False,
    offers=(),
) -> ShopperSession:
    bus = EventBus(scheduler, rebroadcast_delay=settings.rebroadcast_delay)
    order_service = order_service or build_order_service(settings)
    session_id = uuid4().hex
    bind_session(session_id)

    if authenticated:
        bag = open_account_bag(order_service, bus)
    else:
        bag = open_guest_bag(slot or build_slot(settings), bus, session_id=session_id)

    logger.info("Shopper session opened", session_id=session_id, authenticated=authenticated, items=len(bag.snapshot()))
    return ShopperSession(
        settings=settings,
        scheduler=scheduler,
        bus=bus,
        bag=bag,
        order_service=order_service,
        authenticated=authenticated,
        offers=tuple(offers),
        session_id=session_id,
    )
