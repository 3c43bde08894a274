"""Order service factory.

Provides build_order_service() to pick an implementation:
- FakeOrderService when no API base URL is configured (development/tests)
- HttpOrderService against the storefront REST API otherwise
"""

from storefront.config import Settings
from storefront.remote.fake_adapter import FakeOrderService
from storefront.remote.http_adapter import HttpOrderService
from storefront.remote.port import OrderService


def build_order_service(settings: Settings, cookies: dict[str, str] | None = None) -> OrderService:
    if not settings.api_base_url:
        return FakeOrderService()
    return HttpOrderService(
        base_url=settings.api_base_url,
        token=settings.api_token,
        cookies=cookies,
        timeout=settings.api_timeout,
    )
