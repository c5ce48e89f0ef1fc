"""Order model type definitions for database operations."""

from typing import Any, TypedDict


class ProductRef(TypedDict, total=False):
    """Nested product reference on a cart or order line."""

    id: str
    name: str


class VariantRef(TypedDict, total=False):
    """Nested variant reference on a cart or order line."""

    id: str
    price: float | str


class CartLine(TypedDict, total=False):
    """A cart or order line as stored by the storefront.

    Rows come from several tables and not every key is present; only the
    item normalizer reads this shape.
    """

    product_id: str
    product: ProductRef
    product_name: str
    title: str
    variant_id: str
    variant: VariantRef
    variant_price: float | str
    price: float | str
    unit_price: float | str
    quantity: int | str


class CompletedOrder(TypedDict):
    """completed_orders table row representation.

    Written once per successful payment and read by the confirmation page.
    """

    order_id: str
    details: dict[str, Any]
    created_at: str
