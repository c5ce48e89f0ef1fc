"""Completed order records read by the confirmation page."""

import logging
from datetime import datetime, timezone
from typing import Any

from paybridge.core.supabase import get_supabase_client
from paybridge.models.order import CompletedOrder

logger = logging.getLogger(__name__)


class CompletedOrderService:
    """Service for persisting and reading completed PayPal orders."""

    def __init__(self) -> None:
        """Initialize completed order service with Supabase client."""
        self.client = get_supabase_client()

    async def save(self, order_id: str | None, details: dict[str, Any]) -> CompletedOrder:
        """Persist capture details for an order.

        Args:
            order_id: Storefront order id; the confirmation page is keyed by it.
            details: PayPal capture details.

        Returns:
            CompletedOrder: The stored record.
        """
        record: CompletedOrder = {
            "order_id": order_id or "",
            "details": {**details, "order_id": order_id},
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        response = (
            self.client.table("completed_orders")
            .upsert(record, on_conflict="order_id")
            .execute()
        )

        logger.info("Saved completed order %s", order_id)
        return response.data[0] if response.data else record

    async def get(self, order_id: str) -> CompletedOrder | None:
        """Get a completed order record.

        Args:
            order_id: Storefront order id.

        Returns:
            CompletedOrder | None: The record or None if not found.
        """
        response = (
            self.client.table("completed_orders")
            .select("*")
            .eq("order_id", order_id)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None
