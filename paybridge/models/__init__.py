"""Database model type definitions."""

from paybridge.models.order import CartLine, CompletedOrder, ProductRef, VariantRef

__all__ = [
    "CartLine",
    "CompletedOrder",
    "ProductRef",
    "VariantRef",
]
