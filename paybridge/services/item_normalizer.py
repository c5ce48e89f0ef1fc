"""Normalization of heterogeneous cart and order lines into payment items.

Cart lines arrive in several shapes: flat rows from the cart
(``product_id``, ``variant_price``), order rows from the backend
(``unit_price``) and nested rows with ``product``/``variant`` objects.
Each field is resolved by walking an ordered list of paths and taking the
first usable value. Nothing is dropped here; unusable rows become
zero-quantity records and :func:`to_payment_items` applies the single
exclusion rule.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from paybridge.models.order import CartLine
from paybridge.schemas.payment import NormalizedItem, PaymentItem

logger = logging.getLogger(__name__)

Path = tuple[str, ...]

# Identifiers use the first truthy value
PRODUCT_ID_PATHS: tuple[Path, ...] = (("product_id",), ("product", "id"))
VARIANT_ID_PATHS: tuple[Path, ...] = (("variant_id",), ("variant", "id"))
PRODUCT_NAME_PATHS: tuple[Path, ...] = (("product_name",), ("product", "name"), ("title",))

# Numbers use the first value that is present, even if it is zero
QUANTITY_PATHS: tuple[Path, ...] = (("quantity",),)
UNIT_PRICE_PATHS: tuple[Path, ...] = (
    ("variant_price",),
    ("variant", "price"),
    ("price",),
    ("unit_price",),
)


def _lookup(row: Mapping[str, Any], path: Path) -> Any:
    value: Any = row
    for part in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def first_truthy(row: Mapping[str, Any], paths: Iterable[Path]) -> Any:
    """Return the first truthy value found along ``paths``."""
    for path in paths:
        value = _lookup(row, path)
        if value:
            return value
    return None


def first_present(row: Mapping[str, Any], paths: Iterable[Path]) -> Any:
    """Return the first non-null value found along ``paths``."""
    for path in paths:
        value = _lookup(row, path)
        if value is not None:
            return value
    return None


def coerce_number(value: Any) -> float:
    """Coerce a raw value to a finite, non-negative float, or 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, BaseModel):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return raw
    return {}


def normalize_item(raw: CartLine | Any) -> NormalizedItem:
    """Convert one raw line into a :class:`NormalizedItem`. Never raises."""
    row = _as_mapping(raw)

    product_id = first_truthy(row, PRODUCT_ID_PATHS)
    variant_id = first_truthy(row, VARIANT_ID_PATHS)
    product_name = first_truthy(row, PRODUCT_NAME_PATHS)

    return NormalizedItem(
        product_id=str(product_id) if product_id else "",
        variant_id=str(variant_id) if variant_id else None,
        quantity=int(coerce_number(first_present(row, QUANTITY_PATHS))),
        unit_price=coerce_number(first_present(row, UNIT_PRICE_PATHS)),
        product_name=str(product_name) if product_name else None,
    )


def normalize_items(raw_items: Iterable[CartLine | Any] | None) -> list[NormalizedItem]:
    """Normalize every raw line, one output per input, preserving order."""
    if not raw_items:
        return []
    return [normalize_item(raw) for raw in raw_items]


def is_payable(item: NormalizedItem) -> bool:
    """Whether an item takes part in the payment."""
    return bool(item.product_id) and item.quantity > 0


def to_payment_items(items: Iterable[NormalizedItem]) -> list[PaymentItem]:
    """Filter unpayable items and de-duplicate by product and variant.

    The first occurrence of each ``product_id:variant_id`` key wins and
    insertion order is preserved.
    """
    seen: set[str] = set()
    payment_items: list[PaymentItem] = []
    for item in items:
        if not is_payable(item):
            continue
        payment_item = PaymentItem(**item.model_dump())
        if payment_item.key in seen:
            logger.debug("Dropping duplicate payment item %s", payment_item.key)
            continue
        seen.add(payment_item.key)
        payment_items.append(payment_item)
    return payment_items
