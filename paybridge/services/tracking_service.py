"""Purchase event emission for analytics."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field

from paybridge.core.config import get_settings

logger = logging.getLogger(__name__)


class TrackingVariant(BaseModel):
    """Variant reference on a tracked product."""

    id: str


class TrackingProduct(BaseModel):
    """Product entry of a purchase event."""

    id: str
    title: str | None = None
    price: float = 0.0
    category: str = "product"
    variant: TrackingVariant | None = None
    quantity: int = 1


class PurchaseEvent(BaseModel):
    """Purchase event sent once per successful payment."""

    products: list[TrackingProduct] = Field(default_factory=list)
    value: float
    currency: str
    order_id: str | None = None
    custom_parameters: dict[str, Any] = Field(default_factory=dict)


def create_tracking_product(
    id: str,
    title: str | None = None,
    price: float = 0.0,
    category: str = "product",
    variant: dict[str, Any] | None = None,
    quantity: int = 1,
) -> TrackingProduct:
    """Build a tracked product entry."""
    return TrackingProduct(
        id=id,
        title=title,
        price=price,
        category=category,
        variant=TrackingVariant(**variant) if variant else None,
        quantity=quantity,
    )


def get_currency_from_settings(currency: str | None = None) -> str:
    """Uppercase currency code for analytics, defaulting to the store currency."""
    return (currency or get_settings().default_currency).upper()


class TrackingService:
    """Forwards purchase events to the configured collector."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self.settings = get_settings()
        self._client = http_client

    async def track_purchase(self, event: PurchaseEvent) -> None:
        """Emit a purchase event.

        The event is always logged. Delivery to the collector is best
        effort and never raises.

        Args:
            event: Purchase to record.
        """
        logger.info(
            "Purchase: order=%s value=%.2f %s products=%d",
            event.order_id,
            event.value,
            event.currency,
            len(event.products),
        )

        endpoint = self.settings.tracking_endpoint_url
        if not endpoint:
            return

        payload = {"event": "purchase", **event.model_dump(mode="json", exclude_none=True)}
        try:
            if self._client is not None:
                response = await self._client.post(endpoint, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
                    response = await client.post(endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to deliver purchase event for order %s: %s", event.order_id, str(e))
