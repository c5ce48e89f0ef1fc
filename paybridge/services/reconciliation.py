"""Reconciliation of a captured PayPal order with the backend order record.

One controller handles one checkout attempt. It moves through
``idle -> submitting -> succeeded | stock_conflict | failed`` and refuses
to start a second submission while one is in flight, so a captured order
is never charged twice. Every error is turned into an outcome here; none
escape to the caller.
"""

import logging
from typing import Any, Protocol

from paybridge.core.checkout_state import CheckoutState
from paybridge.core.config import Settings, get_settings
from paybridge.core.errors import GenericBackendError, ProviderError, StockConflictError
from paybridge.schemas.payment import (
    BackendErrorBody,
    CaptureRequest,
    ChargeRequest,
    Notification,
    OrderSnapshot,
    PaymentContext,
    PaymentItem,
    PaymentOutcome,
    ReconciliationState,
)
from paybridge.services.item_normalizer import normalize_items, to_payment_items
from paybridge.services.payload_builder import PAYMENT_METHOD, build_charge_request
from paybridge.services.tracking_service import (
    PurchaseEvent,
    create_tracking_product,
    get_currency_from_settings,
)

logger = logging.getLogger(__name__)


class ChargeSubmitter(Protocol):
    async def submit_charge(self, charge: ChargeRequest) -> dict[str, Any]: ...


class OrderCapturer(Protocol):
    async def capture_order(self, provider_order_id: str) -> dict[str, Any]: ...


class Cart(Protocol):
    async def clear_cart(self, checkout_token: str | None) -> Any: ...


class PurchaseTracker(Protocol):
    async def track_purchase(self, event: PurchaseEvent) -> None: ...


class CompletedOrderStore(Protocol):
    async def save(self, order_id: str | None, details: dict[str, Any]) -> Any: ...


def success_notification() -> Notification:
    return Notification(
        title="Payment successful",
        description="Your purchase was processed with PayPal.",
    )


def provider_error_notification() -> Notification:
    return Notification(
        title="PayPal error",
        description="There was a problem processing the payment. Please try again.",
        variant="destructive",
    )


def payment_error_notification(message: str | None = None) -> Notification:
    return Notification(
        title="Payment error",
        description=message or "Could not process the PayPal payment.",
        variant="destructive",
    )


def stock_conflict_notification(body: BackendErrorBody) -> Notification:
    names = ", ".join(item.label for item in body.unavailable_items)
    return Notification(
        title="Items out of stock",
        description=f"The following items are out of stock: {names}. Please remove them from your cart.",
        variant="destructive",
    )


def order_from_conflict(body: BackendErrorBody, context: PaymentContext, store_id: str) -> OrderSnapshot:
    """Order the backend reported alongside a stock conflict.

    Uses the embedded order when present, otherwise assembles one from the
    top-level order fields of the response.
    """
    if body.order is not None:
        return body.order
    return OrderSnapshot(
        id=body.order_id or context.order_id,
        store_id=store_id,
        checkout_token=body.checkout_token or context.checkout_token,
        currency_code=body.currency_code,
        subtotal=body.subtotal,
        discount_amount=body.discount_amount,
        total_amount=body.total_amount,
        order_items=body.order_items or [],
    )


class ReconciliationController:
    """Captures an approved PayPal order and records it with the backend."""

    def __init__(
        self,
        *,
        checkout_state: CheckoutState,
        backend: ChargeSubmitter,
        provider: OrderCapturer,
        cart: Cart,
        tracker: PurchaseTracker,
        completed_orders: CompletedOrderStore,
        settings: Settings | None = None,
    ) -> None:
        self.checkout_state = checkout_state
        self.backend = backend
        self.provider = provider
        self.cart = cart
        self.tracker = tracker
        self.completed_orders = completed_orders
        self.settings = settings or get_settings()
        self.state = ReconciliationState.IDLE

    @property
    def loading(self) -> bool:
        """True while a submission is in flight."""
        return self.state is ReconciliationState.SUBMITTING

    def source_items(self, context: PaymentContext) -> list[Any]:
        """Raw lines to pay for: explicit items, else the cached order's items."""
        if context.items:
            return list(context.items)
        order = self.checkout_state.get_fresh_order() or self.checkout_state.get_order_snapshot()
        if order is None:
            logger.warning("No items supplied and no cached order for order %s", context.order_id)
            return []
        return list(order.order_items)

    def payment_items(self, context: PaymentContext) -> list[PaymentItem]:
        return to_payment_items(normalize_items(self.source_items(context)))

    async def capture(self, request: CaptureRequest) -> PaymentOutcome:
        """Capture the PayPal order and reconcile it with the backend.

        Args:
            request: PayPal order id, payer id and checkout context.

        Returns:
            PaymentOutcome: What happened and what the storefront should show.
        """
        context = request.context
        if self.loading:
            logger.warning("Capture for order %s already in flight; ignoring", context.order_id)
            return PaymentOutcome(state=ReconciliationState.IN_PROGRESS, order_id=context.order_id)

        self.state = ReconciliationState.SUBMITTING
        try:
            try:
                details = await self.provider.capture_order(request.provider_order_id)
            except ProviderError as e:
                logger.error("PayPal capture failed for order %s: %s", context.order_id, e.message)
                return self._fail(context, provider_error_notification())

            items = self.payment_items(context)
            charge = build_charge_request(
                items,
                context,
                store_id=self.settings.store_id,
                provider_order_id=request.provider_order_id,
                payer_id=request.payer_id,
            )
            logger.info(
                "Submitting charge for order %s: %d items, amount=%d %s",
                context.order_id,
                len(items),
                charge.amount,
                charge.currency,
            )
            await self.backend.submit_charge(charge)
            return await self._succeed(request, charge, items, details)

        except StockConflictError as e:
            return self._stock_conflict(context, e.body)
        except GenericBackendError as e:
            logger.error("Charge failed for order %s: %s", context.order_id, e.message)
            return self._fail(context, payment_error_notification(e.message))
        except Exception:
            logger.exception("Unexpected error reconciling order %s", context.order_id)
            return self._fail(context, payment_error_notification())
        finally:
            if self.state is ReconciliationState.SUBMITTING:
                self.state = ReconciliationState.FAILED

    async def _succeed(
        self,
        request: CaptureRequest,
        charge: ChargeRequest,
        items: list[PaymentItem],
        details: dict[str, Any],
    ) -> PaymentOutcome:
        context = request.context
        self.state = ReconciliationState.SUCCEEDED

        # The charge is recorded; bookkeeping failures must not report the payment as failed
        try:
            await self.tracker.track_purchase(
                PurchaseEvent(
                    products=[
                        create_tracking_product(
                            id=item.product_id,
                            title=item.product_name,
                            price=item.unit_price,
                            category="product",
                            variant={"id": item.variant_id} if item.variant_id else None,
                            quantity=item.quantity,
                        )
                        for item in items
                    ],
                    value=charge.amount / 100,
                    currency=get_currency_from_settings(charge.currency),
                    order_id=context.order_id,
                    custom_parameters={
                        "payment_method": PAYMENT_METHOD,
                        "checkout_token": context.checkout_token,
                        "paypal_order_id": request.provider_order_id,
                    },
                )
            )
        except Exception:
            logger.exception("Failed to track purchase for order %s", context.order_id)

        try:
            await self.cart.clear_cart(context.checkout_token)
        except Exception:
            logger.exception("Failed to clear cart for checkout %s", context.checkout_token)

        if details:
            try:
                await self.completed_orders.save(context.order_id, details)
            except Exception:
                logger.exception("Failed to save completed order %s", context.order_id)

        logger.info("Order %s paid with PayPal order %s", context.order_id, request.provider_order_id)
        return PaymentOutcome(
            state=ReconciliationState.SUCCEEDED,
            order_id=context.order_id,
            redirect_to=self.settings.thank_you_path_template.format(order_id=context.order_id),
            notification=success_notification(),
            capture=details or None,
        )

    def _stock_conflict(self, context: PaymentContext, body: BackendErrorBody) -> PaymentOutcome:
        self.state = ReconciliationState.STOCK_CONFLICT
        order = order_from_conflict(body, context, self.settings.store_id)
        self.checkout_state.update_order_cache(order)
        logger.warning(
            "Stock conflict for order %s: %s",
            context.order_id,
            ", ".join(item.label for item in body.unavailable_items),
        )
        return PaymentOutcome(
            state=ReconciliationState.STOCK_CONFLICT,
            order_id=context.order_id,
            notification=stock_conflict_notification(body),
            unavailable_items=body.unavailable_items,
            order=order,
        )

    def _fail(self, context: PaymentContext, notification: Notification) -> PaymentOutcome:
        self.state = ReconciliationState.FAILED
        return PaymentOutcome(
            state=ReconciliationState.FAILED,
            order_id=context.order_id,
            notification=notification,
        )
