"""PayPal payment business logic service."""

import logging
from threading import Lock

from paybridge.core.checkout_state import CheckoutStateCache, get_checkout_state_cache
from paybridge.core.config import Settings, get_settings
from paybridge.core.edge import ChargeBackend, get_charge_backend
from paybridge.schemas.payment import (
    CaptureRequest,
    Notification,
    PaymentContext,
    PaymentOutcome,
    ProviderErrorReport,
    ProviderOrder,
    ReconciliationState,
    ScriptOptions,
)
from paybridge.services.cart_service import CartService
from paybridge.services.completed_order_service import CompletedOrderService
from paybridge.services.provider_order_adapter import ProviderOrderAdapter, ValidationHook
from paybridge.services.reconciliation import ReconciliationController, provider_error_notification
from paybridge.services.tracking_service import TrackingService

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for PayPal order creation, capture and reconciliation.

    Keeps the controller of every capture in flight so that a repeated
    approval callback for the same checkout does not submit a second charge.
    """

    def __init__(
        self,
        provider: ProviderOrderAdapter | None = None,
        backend: ChargeBackend | None = None,
        checkout_state: CheckoutStateCache | None = None,
        cart: CartService | None = None,
        tracker: TrackingService | None = None,
        completed_orders: CompletedOrderService | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize payment service with its collaborators."""
        self.settings = settings or get_settings()
        self.provider = provider or ProviderOrderAdapter(settings=self.settings)
        self.backend = backend or get_charge_backend()
        self.checkout_state = checkout_state or get_checkout_state_cache()
        self.cart = cart or CartService()
        self.tracker = tracker or TrackingService()
        self.completed_orders = completed_orders or CompletedOrderService()
        self._controllers: dict[str, ReconciliationController] = {}
        self._lock = Lock()

    def with_default_currency(self, context: PaymentContext) -> PaymentContext:
        if context.currency:
            return context
        return context.model_copy(update={"currency": self.settings.default_currency})

    def script_options(self, currency: str | None = None) -> ScriptOptions:
        """PayPal JS SDK options for the storefront."""
        return self.provider.script_options(currency)

    async def create_order(
        self,
        context: PaymentContext,
        validation_hook: ValidationHook | None = None,
    ) -> ProviderOrder:
        """Validate the checkout and create the PayPal order.

        Raises:
            CheckoutValidationError: The checkout is incomplete.
            ProviderError: PayPal rejected the order.
        """
        return await self.provider.create_order(self.with_default_currency(context), validation_hook)

    def _controller_for(self, key: str) -> ReconciliationController:
        with self._lock:
            controller = self._controllers.get(key)
            if controller is None:
                controller = ReconciliationController(
                    checkout_state=self.checkout_state.for_checkout(key),
                    backend=self.backend,
                    provider=self.provider,
                    cart=self.cart,
                    tracker=self.tracker,
                    completed_orders=self.completed_orders,
                    settings=self.settings,
                )
                self._controllers[key] = controller
            return controller

    def _release(self, key: str, controller: ReconciliationController) -> None:
        with self._lock:
            if not controller.loading and self._controllers.get(key) is controller:
                del self._controllers[key]

    def in_flight(self, key: str) -> bool:
        """Whether a capture is currently being reconciled for a checkout."""
        with self._lock:
            controller = self._controllers.get(key)
            return controller is not None and controller.loading

    async def capture(self, request: CaptureRequest) -> PaymentOutcome:
        """Capture an approved PayPal order and reconcile it.

        Args:
            request: PayPal ids and checkout context.

        Returns:
            PaymentOutcome: Result of the attempt.
        """
        request = request.model_copy(update={"context": self.with_default_currency(request.context)})
        key = request.context.attempt_key or request.provider_order_id
        controller = self._controller_for(key)
        try:
            outcome = await controller.capture(request)
        finally:
            self._release(key, controller)

        if outcome.state is ReconciliationState.SUCCEEDED:
            self.checkout_state.discard(key)
        return outcome

    def report_provider_error(self, report: ProviderErrorReport) -> Notification:
        """Record an error raised by the PayPal buttons."""
        logger.error(
            "PayPal error for order %s (checkout %s): %s",
            report.order_id,
            report.checkout_token,
            report.message,
        )
        return provider_error_notification()


_payment_service: PaymentService | None = None


def get_payment_service() -> PaymentService:
    """Get or create the global payment service instance."""
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentService()
    return _payment_service
