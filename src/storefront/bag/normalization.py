"""Product normalization: loose product records in, strict bag lines out.

Product cards, the browser, and old stored bags all name the same attributes
differently. Every candidate field name lives in the ordered tuples below;
nothing else in the bag looks at raw records.
"""

import math
from collections.abc import Mapping
from typing import Any

from protean.exceptions import ValidationError

from storefront.bag.snapshot import ItemView

ID_FIELDS = ("id", "_id")
NESTED_PRODUCT_FIELD = "product"
SKU_FIELD = "sku"
TITLE_FIELDS = ("title", "name", "productName")
NAME_FIELDS = ("name", "title")
PRICE_FIELDS = ("price", "amount", "basePrice", "Price", "Amount", "BasePrice")
STORED_QTY_FIELDS = ("qty", "quantity")

MISSING_ID_MESSAGE = "Product ID is missing. Please try again."


def _has_value(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _first(record: Mapping, fields: tuple[str, ...]) -> Any:
    for field in fields:
        value = record.get(field)
        if _has_value(value) and value != 0:
            return value
    return None


def normalize_id(value: Any) -> str | None:
    """The lookup key for a product id: trimmed text, or None when blank."""
    if not _has_value(value):
        return None
    return str(value).strip()


def resolve_product_id(product: Mapping) -> str | None:
    """Return the product's identity as text, or None when it has none."""
    for field in ID_FIELDS:
        if _has_value(product.get(field)):
            return normalize_id(product[field])

    nested = product.get(NESTED_PRODUCT_FIELD)
    if isinstance(nested, Mapping):
        for field in ID_FIELDS:
            if _has_value(nested.get(field)):
                return normalize_id(nested[field])

    return normalize_id(product.get(SKU_FIELD))


def coerce_price(raw: Any) -> float:
    """Coerce a raw price to a finite, non-negative float (0.0 when unusable)."""
    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value <= 0:
        return 0.0
    return value


def coerce_quantity(raw: Any) -> int | None:
    """Return ``raw`` as a positive integer, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or not value.is_integer() or value <= 0:
        return None
    return int(value)


def price_sources(product: Mapping) -> dict[str, Any]:
    """Raw price candidates present on a record, for valuation warnings."""
    return {field: product.get(field) for field in PRICE_FIELDS if field in product}


def _labels(record: Mapping, product_id: str) -> tuple[str, str]:
    title = _first(record, TITLE_FIELDS)
    title = str(title) if title is not None else product_id
    name = _first(record, NAME_FIELDS)
    name = str(name) if name is not None else title
    return title, name


def normalize_product(product: Any, qty: Any = 1) -> ItemView:
    """Map a loosely-shaped product record to a bag line.

    Raises:
        ValidationError: when no identity can be resolved from the record.
    """
    if not isinstance(product, Mapping):
        raise ValidationError({"id": [MISSING_ID_MESSAGE]})

    product_id = resolve_product_id(product)
    if product_id is None:
        raise ValidationError({"id": [MISSING_ID_MESSAGE]})

    title, name = _labels(product, product_id)
    quantity = coerce_quantity(qty) or coerce_quantity(product.get("quantity")) or 1

    return ItemView(
        id=product_id,
        title=title,
        name=name,
        price=coerce_price(_first(product, PRICE_FIELDS)),
        qty=quantity,
    )


def normalize_stored_entry(entry: Any) -> ItemView | None:
    """Map one raw durable-slot record to a bag line; None if it has no identity."""
    if not isinstance(entry, Mapping):
        return None

    product_id = resolve_product_id(entry)
    if product_id is None:
        return None

    title, name = _labels(entry, product_id)
    quantity = coerce_quantity(_first(entry, STORED_QTY_FIELDS)) or 1

    return ItemView(
        id=product_id,
        title=title,
        name=name,
        price=coerce_price(_first(entry, PRICE_FIELDS)),
        qty=quantity,
    )
