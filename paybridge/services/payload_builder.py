"""Assembly of the charge request submitted to the backend."""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from paybridge.schemas.payment import (
    AddressInput,
    ChargeAddress,
    ChargeRequest,
    CustomerContact,
    DeliveryExpectation,
    PaymentContext,
    PaymentItem,
    PickupLocation,
    ValidationData,
    ValidationItem,
)

PAYMENT_METHOD = "paypal"
PICKUP_DELIVERY_TYPE = "pickup"
DEFAULT_DELIVERY_TYPE = "standard_delivery"
DEFAULT_ESTIMATED_DAYS = "3-5"
DEFAULT_CURRENCY = "mxn"


def to_minor_units(amount: float | int | None) -> int:
    """Floor a requested amount in minor units and clamp it at zero."""
    if not amount:
        return 0
    try:
        return max(0, math.floor(amount))
    except (OverflowError, ValueError):
        return 0


def price_to_minor_units(price: float) -> int:
    """Convert a major-unit price to minor units, rounding halves up."""
    try:
        cents = (Decimal(str(price)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return 0
    return max(0, int(cents))


def order_description(context: PaymentContext) -> str:
    """Description shown on the PayPal order and the charge record."""
    return context.description or f"Order #{context.order_id or 's/n'}"


def build_address(address: AddressInput | None) -> ChargeAddress | None:
    """Normalize a checkout address, or ``None`` when none was given."""
    if address is None:
        return None
    return ChargeAddress(
        line1=address.line1 or "",
        line2=address.line2 or "",
        city=address.city or "",
        state=address.state or "",
        postal_code=address.postal_code or "",
        country=address.country or "",
        name=f"{address.first_name or ''} {address.last_name or ''}".strip(),
    )


def build_validation_items(items: list[PaymentItem]) -> list[ValidationItem]:
    return [
        ValidationItem(
            product_id=item.product_id,
            quantity=item.quantity,
            variant_id=item.variant_id or None,
            price=price_to_minor_units(item.unit_price),
        )
        for item in items
    ]


def build_metadata(
    context: PaymentContext,
    provider_order_id: str | None,
    payer_id: str | None,
) -> dict[str, str]:
    """Charge metadata; caller-supplied keys override the defaults."""
    metadata = {
        "order_id": context.order_id or "",
        "payment_method": PAYMENT_METHOD,
        "paypal_order_id": provider_order_id or "",
        "paypal_payer_id": payer_id or "",
    }
    metadata.update(context.metadata or {})
    return metadata


def build_delivery_fields(context: PaymentContext) -> dict:
    """Pickup block or delivery expectations block, never both."""
    pickups = context.pickup_locations
    if len(pickups) == 1:
        return {
            "delivery_method": PICKUP_DELIVERY_TYPE,
            "pickup_locations": [
                PickupLocation(
                    id=loc.id or loc.name,
                    name=loc.name or "",
                    address=f"{loc.line1 or ''}, {loc.city or ''}, {loc.state or ''}, {loc.country or ''}",
                    hours=loc.schedule or "",
                )
                for loc in pickups
            ],
        }

    expectations = context.delivery_expectations
    if expectations and expectations[0].type != PICKUP_DELIVERY_TYPE:
        return {
            "delivery_expectations": [
                DeliveryExpectation(
                    type=exp.type or DEFAULT_DELIVERY_TYPE,
                    description=exp.description or "",
                    estimated_days=DEFAULT_ESTIMATED_DAYS if exp.price is not None else None,
                )
                for exp in expectations
            ],
        }

    return {}


def build_charge_request(
    items: list[PaymentItem],
    context: PaymentContext,
    *,
    store_id: str,
    provider_order_id: str | None = None,
    payer_id: str | None = None,
) -> ChargeRequest:
    """Build the charge request for a captured PayPal order.

    Args:
        items: Filtered, de-duplicated payment items.
        context: Checkout context the storefront supplied.
        store_id: Store identifier.
        provider_order_id: PayPal order id.
        payer_id: PayPal payer id.

    Returns:
        ChargeRequest: Payload for the charge endpoint.
    """
    total_cents = to_minor_units(context.amount_cents)
    metadata = build_metadata(context, provider_order_id, payer_id)
    discount_code = (context.metadata or {}).get("discount_code") or None

    return ChargeRequest(
        store_id=store_id,
        order_id=context.order_id,
        checkout_token=context.checkout_token,
        amount=total_cents,
        currency=context.currency or DEFAULT_CURRENCY,
        expected_total=context.expected_total or total_cents,
        delivery_fee=context.delivery_fee,
        description=order_description(context),
        metadata=metadata,
        receipt_email=context.email,
        customer=CustomerContact(email=context.email, name=context.name, phone=context.phone),
        validation_data=ValidationData(
            shipping_address=build_address(context.shipping_address),
            billing_address=build_address(context.billing_address),
            items=build_validation_items(items),
            discount_code=discount_code,
        ),
        **build_delivery_fields(context),
    )
