"""Pydantic request/response schemas for the Storefront API.

These are external contracts, separate from the bag's internal views. Product
records on the add endpoint are deliberately loose: the bag normalizes them.
"""

from typing import Any

from pydantic import BaseModel, Field

from storefront.bag.snapshot import BagSnapshot


# ---------------------------------------------------------------------------
# Bag
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    id: str
    title: str
    name: str
    price: float = Field(ge=0)
    qty: int = Field(ge=1)
    subtotal: float


class BagResponse(BaseModel):
    items: list[LineItemSchema]
    total: float
    count: int

    @classmethod
    def from_snapshot(cls, snapshot: BagSnapshot) -> "BagResponse":
        return cls(
            items=[
                LineItemSchema(
                    id=item.id,
                    title=item.title,
                    name=item.name,
                    price=item.price,
                    qty=item.qty,
                    subtotal=item.subtotal,
                )
                for item in snapshot.items
            ],
            total=snapshot.total,
            count=snapshot.count,
        )


class BadgeResponse(BaseModel):
    count: int


class AddItemRequest(BaseModel):
    product: dict[str, Any]
    qty: int = 1

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product": {"id": "p1", "title": "Apple", "price": 40},
                    "qty": 2,
                }
            ]
        }
    }


class SetQuantityRequest(BaseModel):
    qty: int  # zero or less removes the line


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class PromoRequest(BaseModel):
    code: str


class PromoResponse(BaseModel):
    code: str
    discount: float
    subtotal: float
    total: float


class GuestDetailsSchema(BaseModel):
    name: str
    phone: str
    address_line: str
    city: str | None = None
    state: str | None = None
    pincode: str | None = None


class PlaceOrderRequest(BaseModel):
    guest: GuestDetailsSchema | None = None
    address_id: str | None = None
    promo_code: str | None = None


class OrderReceiptResponse(BaseModel):
    order_id: str
    total: float
    discount: float
