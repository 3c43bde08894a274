"""Checkout review: the last look at the bag before an order is placed.

The review reads the bag once when it mounts and holds that snapshot for the
rest of the step; it does not follow live notifications. Before an order goes
out it re-validates the bag on its own: a line with no usable price blocks the
order even though the bag accepted it.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from storefront.bag.snapshot import BagSnapshot
from storefront.bag.sources import BagSource
from storefront.observers.base import BagObserver, ObserverState
from storefront.remote.port import GuestDetails, OrderLine, OrderReceipt, OrderRequest, OrderService
from storefront.scheduling.port import Scheduler

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PromoOffer:
    """A checkout promo code: ``percent`` of the subtotal, or a ``flat`` amount."""

    code: str
    type: str = "percent"
    value: float = 0.0

    def discount_for(self, subtotal: float) -> float:
        if self.type.lower() == "flat":
            amount = float(self.value)
        else:
            amount = subtotal * float(self.value) / 100
        return max(0.0, amount)


def order_product_id(product_id: str) -> int | str:
    """Numeric ids go out as integers; anything else (e.g. service ids) as text."""
    try:
        number = float(product_id)
    except ValueError:
        return product_id
    if number.is_integer():
        return int(number)
    return product_id


class CheckoutReview(BagObserver):
    def __init__(
        self,
        source: BagSource,
        scheduler: Scheduler,
        order_service: OrderService,
        offers=(),
    ) -> None:
        super().__init__(source, scheduler)
        self.order_service = order_service
        self.offers = {offer.code.strip().upper(): offer for offer in offers}
        self.snapshot = BagSnapshot.empty()
        self.promo_code: str | None = None
        self.discount: float = 0.0

    def render(self, snapshot: BagSnapshot) -> None:
        self.snapshot = snapshot

    def read_now(self) -> "CheckoutReview":
        """Mount with a blocking read, for callers already off the UI loop (API requests)."""
        self.state = ObserverState.LOADING
        self._apply(self.source.load())
        return self

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> float:
        return self.snapshot.total

    @property
    def total(self) -> float:
        return max(self.subtotal - self.discount, 0.0)

    # -------------------------------------------------------------------
    # Promo codes
    # -------------------------------------------------------------------
    def apply_promo(self, code: str) -> float:
        """Apply a promo code and return the resulting discount."""
        normalized = (code or "").strip().upper()
        offer = self.offers.get(normalized)
        if offer is None:
            self.promo_code = None
            self.discount = 0.0
            raise ValidationError({"promo_code": ["Invalid promo code. Please try again."]})

        self.promo_code = normalized
        self.discount = offer.discount_for(self.subtotal)
        logger.info("Promo code applied", code=normalized, discount=self.discount)
        return self.discount

    # -------------------------------------------------------------------
    # Validation and placement
    # -------------------------------------------------------------------
    def validate(self) -> None:
        if not self.snapshot.items:
            raise ValidationError({"bag": ["Your bag is empty"]})

        unpriced = [item.title for item in self.snapshot.items if item.price <= 0]
        if unpriced:
            logger.warning("Checkout blocked by unpriced items", items=unpriced)
            raise ValidationError(
                {"price": [f"Cannot place order: no valid price for {', '.join(unpriced)}. Please re-add them."]}
            )

        if self.subtotal <= 0:
            raise ValidationError({"total": ["Order total must be greater than zero"]})

    def build_request(self, guest: GuestDetails | None = None, address_id: str | None = None) -> OrderRequest:
        if guest is not None:
            if any(not (value or "").strip() for value in (guest.name, guest.phone, guest.address_line)):
                raise ValidationError({"guest": ["Please fill name, phone and address to continue as guest"]})
        elif not address_id:
            raise ValidationError({"address": ["Please select a delivery address or checkout as guest"]})

        return OrderRequest(
            lines=tuple(
                OrderLine(product_id=order_product_id(item.id), qty=item.qty, price=item.price, title=item.title)
                for item in self.snapshot.items
            ),
            total=self.total,
            promo_code=self.promo_code,
            discount=self.discount,
            guest=guest,
            address_id=address_id,
        )

    def place_order(self, guest: GuestDetails | None = None, address_id: str | None = None) -> OrderReceipt:
        """Create the order from the frozen snapshot, then empty the bag.

        Raises:
            ValidationError: the bag or the delivery details block the order.
            OrderServiceError: the backend refused; the bag is left intact.
        """
        self.validate()
        request = self.build_request(guest=guest, address_id=address_id)
        receipt = self.order_service.create_order(request)
        self.source.clear()
        logger.info("Order placed from bag", order_id=receipt.order_id, lines=len(request.lines), total=request.total)
        return receipt
