"""Cart persistence operations."""

import logging

from paybridge.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)


class CartService:
    """Service for the storefront's in-progress carts."""

    def __init__(self) -> None:
        """Initialize cart service with Supabase client."""
        self.client = get_supabase_client()

    async def clear_cart(self, checkout_token: str | None) -> int:
        """Remove every cart line belonging to a checkout.

        Args:
            checkout_token: Checkout whose cart is cleared.

        Returns:
            int: Number of cart lines removed.
        """
        if not checkout_token:
            logger.warning("Skipping cart clear: no checkout token")
            return 0

        response = (
            self.client.table("cart_items")
            .delete()
            .eq("checkout_token", checkout_token)
            .execute()
        )

        removed = len(response.data) if response.data else 0
        logger.info("Cleared %d cart lines for checkout %s", removed, checkout_token)
        return removed
