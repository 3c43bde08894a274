"""Storefront REST API adapter for the order service."""

import httpx
import structlog

from storefront.remote.port import OrderReceipt, OrderRequest, OrderService, OrderServiceError

logger = structlog.get_logger(__name__)

NETWORK_ERROR_MESSAGE = "Unable to connect to server. Please check your internet connection."
TIMEOUT_MESSAGE = "Request timed out. Please try again."
SERVER_ERROR_MESSAGE = "Server error. Please try again later."
NOT_FOUND_MESSAGE = "Resource not found."


def order_payload(request: OrderRequest) -> dict:
    """Request body for the create-order endpoints."""
    payload = {
        "items": [
            {"productId": line.product_id, "qty": line.qty, "price": line.price, "title": line.title}
            for line in request.lines
        ],
        "total": request.total,
        "promoCode": request.promo_code,
        "discount": request.discount,
    }
    if request.guest is not None:
        payload.update(
            {
                "customerName": request.guest.name,
                "customerPhone": request.guest.phone,
                "customerAddress": request.guest.formatted_address(),
            }
        )
    else:
        payload["addressId"] = request.address_id
    return payload


class HttpOrderService(OrderService):
    """Client for the storefront's cart and order endpoints.

    Authenticates with a bearer token when one is configured and keeps the
    session cookies the backend sets.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        cookies: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            cookies=cookies,
            transport=transport,
        )

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("Order service timed out", method=method, url=url)
            raise OrderServiceError(TIMEOUT_MESSAGE) from exc
        except httpx.TransportError as exc:
            logger.warning("Order service unreachable", method=method, url=url, error=str(exc))
            raise OrderServiceError(NETWORK_ERROR_MESSAGE) from exc

        if response.status_code >= 500:
            raise OrderServiceError(SERVER_ERROR_MESSAGE, status_code=response.status_code)
        if response.status_code == 404:
            raise OrderServiceError(NOT_FOUND_MESSAGE, status_code=404)
        if response.is_error:
            raise OrderServiceError(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _body(response: httpx.Response):
        try:
            return response.json()
        except ValueError as exc:
            logger.warning(
                "Order service sent a body that is not JSON",
                url=str(response.request.url),
                status_code=response.status_code,
                content_type=response.headers.get("content-type"),
            )
            raise OrderServiceError(SERVER_ERROR_MESSAGE, status_code=response.status_code) from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"Request failed with status {response.status_code}"

    def fetch_bag(self) -> list[dict]:
        body = self._body(self._request("GET", "/api/cart"))
        items = body.get("items") if isinstance(body, dict) else body
        return items if isinstance(items, list) else []

    def replace_bag(self, records: list[dict]) -> None:
        self._request("PUT", "/api/cart", json={"items": records})

    def create_order(self, request: OrderRequest) -> OrderReceipt:
        url = "/orders/create-guest" if request.is_guest else "/orders/create"
        response = self._request("POST", url, json=order_payload(request))
        body = self._body(response)
        if not isinstance(body, dict):
            logger.warning("Order service sent an unexpected order body", status_code=response.status_code)
            raise OrderServiceError(SERVER_ERROR_MESSAGE, status_code=response.status_code)
        order_id = body.get("orderId") or body.get("order_id") or body.get("id")
        if not order_id:
            raise OrderServiceError("Order was not created. Please try again.", status_code=response.status_code)
        logger.info("Order created", order_id=str(order_id), guest=request.is_guest, lines=len(request.lines))
        return OrderReceipt(order_id=str(order_id), details=body)

    def close(self) -> None:
        self.client.close()
