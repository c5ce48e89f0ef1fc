"""PayPal order lifecycle: create before approval, capture after."""

import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from paybridge.core.config import Settings, get_settings
from paybridge.core.errors import (
    MissingRequiredFieldsError,
    PickupLocationRequiredError,
    ProviderError,
)
from paybridge.core.paypal import PayPalClient, get_paypal_client
from paybridge.schemas.payment import PaymentContext, ProviderOrder, ScriptOptions
from paybridge.services.payload_builder import order_description, to_minor_units

logger = logging.getLogger(__name__)

ValidationHook = Callable[[], bool]


def format_major_amount(amount_cents: float | int | None) -> str:
    """Render a minor-unit amount as a two-decimal major-unit string.

    The amount is floored and clamped exactly as for the charge request, so
    PayPal collects the same amount the backend is asked to record.
    """
    value = Decimal(to_minor_units(amount_cents)) / 100
    return f"{value:.2f}"


class ProviderOrderAdapter:
    """Drives PayPal's create and capture phases for one storefront."""

    def __init__(self, paypal: PayPalClient | None = None, settings: Settings | None = None) -> None:
        self.paypal = paypal or get_paypal_client()
        self.settings = settings or get_settings()

    def script_options(self, currency: str | None = None) -> ScriptOptions:
        """Options for loading the PayPal JS SDK on the storefront."""
        configured = self.settings.is_paypal_configured
        return ScriptOptions(
            configured=configured,
            client_id=self.settings.paypal_client_id if configured else None,
            currency=(currency or self.settings.default_currency).upper(),
            intent=self.settings.paypal_intent,
        )

    def check_preconditions(
        self,
        context: PaymentContext,
        validation_hook: ValidationHook | None = None,
    ) -> None:
        """Validate the checkout before any amount is sent to PayPal.

        Raises:
            MissingRequiredFieldsError: The required-field check failed.
            PickupLocationRequiredError: Pickup chosen without a location.
        """
        if validation_hook is not None and not validation_hook():
            raise MissingRequiredFieldsError()
        if context.required_fields_complete is False:
            raise MissingRequiredFieldsError()

        if context.is_pickup and not context.pickup_locations:
            raise PickupLocationRequiredError()

    async def create_order(
        self,
        context: PaymentContext,
        validation_hook: ValidationHook | None = None,
    ) -> ProviderOrder:
        """Create the PayPal order for a checkout.

        Args:
            context: Checkout being paid.
            validation_hook: Optional required-field check supplied by the caller.

        Returns:
            ProviderOrder: The created PayPal order.

        Raises:
            CheckoutValidationError: Preconditions failed; PayPal was not called.
            ProviderError: PayPal rejected the order.
        """
        self.check_preconditions(context, validation_hook)

        value = format_major_amount(context.amount_cents)
        currency_code = (context.currency or self.settings.default_currency).upper()
        description = order_description(context)

        order = await self.paypal.create_order(
            value=value,
            currency_code=currency_code,
            description=description,
            intent=self.settings.paypal_intent,
        )
        order_id = order.get("id")
        if not order_id:
            raise ProviderError("PayPal did not return an order id")

        logger.info("Created PayPal order %s for order %s (%s %s)", order_id, context.order_id, value, currency_code)
        return ProviderOrder(
            id=order_id,
            status=order.get("status"),
            amount_value=value,
            currency_code=currency_code,
            description=description,
        )

    async def capture_order(self, provider_order_id: str) -> dict[str, Any]:
        """Capture an approved PayPal order.

        Raises:
            ProviderError: PayPal failed to capture.
        """
        details = await self.paypal.capture_order(provider_order_id)
        logger.info("Captured PayPal order %s (status=%s)", provider_order_id, details.get("status"))
        return details
