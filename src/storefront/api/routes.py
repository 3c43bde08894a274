"""FastAPI routes for the Storefront domain: the shopper's bag and checkout."""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from storefront.api.schemas import (
    AddItemRequest,
    BadgeResponse,
    BagResponse,
    OrderReceiptResponse,
    PlaceOrderRequest,
    PromoRequest,
    PromoResponse,
    SetQuantityRequest,
)
from storefront.remote.port import GuestDetails, OrderServiceError
from storefront.session import ShopperSession


def get_session(request: Request) -> ShopperSession:
    return request.app.state.shopper


# ---------------------------------------------------------------------------
# Bag Router
# ---------------------------------------------------------------------------
bag_router = APIRouter(prefix="/bag", tags=["bag"])


@bag_router.get("", response_model=BagResponse)
async def get_bag(session: ShopperSession = Depends(get_session)) -> BagResponse:
    return BagResponse.from_snapshot(session.bag.snapshot())


@bag_router.get("/badge", response_model=BadgeResponse)
async def get_badge(session: ShopperSession = Depends(get_session)) -> BadgeResponse:
    return BadgeResponse(count=session.bag.snapshot().count)


@bag_router.post("/items", response_model=BagResponse)
async def add_bag_item(body: AddItemRequest, session: ShopperSession = Depends(get_session)) -> BagResponse:
    session.bag.add_item(body.product, body.qty)
    return BagResponse.from_snapshot(session.bag.snapshot())


@bag_router.put("/items/{product_id}", response_model=BagResponse)
async def set_bag_item_quantity(
    product_id: str, body: SetQuantityRequest, session: ShopperSession = Depends(get_session)
) -> BagResponse:
    session.bag.set_quantity(product_id, body.qty)
    return BagResponse.from_snapshot(session.bag.snapshot())


@bag_router.delete("/items/{product_id}", response_model=BagResponse)
async def remove_bag_item(product_id: str, session: ShopperSession = Depends(get_session)) -> BagResponse:
    session.bag.remove_item(product_id)
    return BagResponse.from_snapshot(session.bag.snapshot())


@bag_router.delete("", response_model=BagResponse)
async def clear_bag(session: ShopperSession = Depends(get_session)) -> BagResponse:
    session.bag.clear()
    return BagResponse.from_snapshot(session.bag.snapshot())


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/promo", response_model=PromoResponse)
async def apply_promo(body: PromoRequest, session: ShopperSession = Depends(get_session)) -> PromoResponse:
    review = session.checkout().read_now()
    discount = review.apply_promo(body.code)
    return PromoResponse(code=review.promo_code, discount=discount, subtotal=review.subtotal, total=review.total)


@checkout_router.post("/orders", status_code=201, response_model=OrderReceiptResponse)
async def place_order(body: PlaceOrderRequest, session: ShopperSession = Depends(get_session)) -> OrderReceiptResponse:
    """Place an order from the bag.

    1. Read the bag once and freeze it
    2. Re-apply the promo code, if any
    3. Validate, create the order, empty the bag
    """
    review = session.checkout().read_now()
    if body.promo_code:
        review.apply_promo(body.promo_code)

    guest = GuestDetails(**body.guest.model_dump()) if body.guest is not None else None
    receipt = review.place_order(guest=guest, address_id=body.address_id)
    return OrderReceiptResponse(order_id=receipt.order_id, total=review.total, discount=review.discount)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"errors": exc.messages})

    @app.exception_handler(OrderServiceError)
    async def order_service_error_handler(request: Request, exc: OrderServiceError):
        return JSONResponse(status_code=502, content={"error": exc.message})
