"""Configurable fake order service for development and testing.

Keeps the account bag in memory and hands out sequential order ids. It can be
configured at runtime to fail, which exercises the degraded read paths and
the checkout error handling without a backend.
"""

from uuid import uuid4

from storefront.remote.port import OrderReceipt, OrderRequest, OrderService, OrderServiceError


class FakeOrderService(OrderService):
    """Configurable fake order service."""

    def __init__(self, bag: list[dict] | None = None) -> None:
        self.bag: list[dict] = list(bag or [])
        self.orders: list[OrderRequest] = []
        self.should_succeed: bool = True
        self.failure_reason: str = "Server error. Please try again later."
        self.failure_status: int | None = 500
        self.calls: list[dict] = []
        self.closed: bool = False

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Server error. Please try again later.",
        failure_status: int | None = 500,
    ) -> None:
        """Configure service behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failure_status = failure_status

    def _check(self) -> None:
        if not self.should_succeed:
            raise OrderServiceError(self.failure_reason, status_code=self.failure_status)

    def fetch_bag(self) -> list[dict]:
        self.calls.append({"method": "fetch_bag"})
        self._check()
        return [dict(record) for record in self.bag]

    def replace_bag(self, records: list[dict]) -> None:
        self.calls.append({"method": "replace_bag", "records": records})
        self._check()
        self.bag = [dict(record) for record in records]

    def create_order(self, request: OrderRequest) -> OrderReceipt:
        self.calls.append({"method": "create_order", "request": request})
        self._check()
        self.orders.append(request)
        order_id = f"fake_order_{uuid4().hex[:12]}"
        return OrderReceipt(order_id=order_id, details={"orderId": order_id, "total": request.total})

    def close(self) -> None:
        self.closed = True
