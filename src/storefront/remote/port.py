"""Remote order service port (abstract interface).

The storefront backend owns account bags and order creation. The bag only
conforms to calling it: reading and replacing an account bag, and creating an
order from the bag at checkout. Adapters: FakeOrderService (dev/test) and
HttpOrderService (the storefront REST API).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class OrderServiceError(Exception):
    """A remote call failed. ``message`` is fit to show the shopper."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class GuestDetails:
    """Delivery details collected from a shopper checking out without an account."""

    name: str
    phone: str
    address_line: str
    city: str | None = None
    state: str | None = None
    pincode: str | None = None

    def formatted_address(self) -> str:
        address = self.address_line.strip()
        if self.city:
            address += f", {self.city.strip()}"
        if self.state:
            address += f", {self.state.strip()}"
        if self.pincode:
            address += f" - {self.pincode.strip()}"
        return address


@dataclass(frozen=True)
class OrderLine:
    product_id: int | str
    qty: int
    price: float
    title: str


@dataclass(frozen=True)
class OrderRequest:
    """Everything the backend needs to create an order from a bag."""

    lines: tuple[OrderLine, ...]
    total: float
    promo_code: str | None = None
    discount: float = 0.0
    guest: GuestDetails | None = None
    address_id: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.guest is not None


@dataclass(frozen=True)
class OrderReceipt:
    order_id: str
    details: dict = field(default_factory=dict)


class OrderService(ABC):
    """Abstract remote order service."""

    @abstractmethod
    def fetch_bag(self) -> list[dict]:
        """Return the account bag as raw line records."""
        ...

    @abstractmethod
    def replace_bag(self, records: list[dict]) -> None:
        """Overwrite the account bag with ``records``."""
        ...

    @abstractmethod
    def create_order(self, request: OrderRequest) -> OrderReceipt:
        """Create an order consuming the bag's contents."""
        ...

    def close(self) -> None:
        """Release connections held by the adapter."""
