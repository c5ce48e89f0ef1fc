"""PayPal payment API routes backing the storefront's PayPal buttons."""

from fastapi import APIRouter, Response, status

from paybridge.api.deps import Payments
from paybridge.schemas.payment import (
    CaptureBody,
    CaptureRequest,
    Notification,
    PaymentContext,
    PaymentOutcome,
    ProviderErrorReport,
    ProviderOrder,
    ReconciliationState,
    ScriptOptions,
)

router = APIRouter(prefix="/payments/paypal", tags=["payments"])


@router.get(
    "/config",
    response_model=ScriptOptions,
    summary="PayPal SDK options",
    description="Client id, currency and intent for loading the PayPal JS SDK.",
)
async def get_script_options(service: Payments, currency: str | None = None) -> ScriptOptions:
    """Return the options for the PayPal script provider.

    ``configured`` is false when no real client id is set; the storefront
    should then show a configuration notice instead of the buttons.
    """
    return service.script_options(currency)


@router.post(
    "/orders",
    response_model=ProviderOrder,
    status_code=status.HTTP_201_CREATED,
    summary="Create PayPal order",
    description="Validates the checkout and creates the PayPal order. Called from the buttons' createOrder callback.",
    responses={
        422: {"description": "Required fields missing or pickup location not selected"},
        502: {"description": "PayPal rejected the order"},
    },
)
async def create_order(context: PaymentContext, service: Payments) -> ProviderOrder:
    """Create the PayPal order for a checkout.

    Args:
        context: Checkout being paid.
        service: Payment service.

    Returns:
        ProviderOrder: The PayPal order id and amount.
    """
    return await service.create_order(context)


@router.post(
    "/orders/{provider_order_id}/capture",
    response_model=PaymentOutcome,
    summary="Capture PayPal order",
    description="Captures an approved PayPal order and records the charge. Called from the buttons' onApprove callback.",
    responses={
        409: {"description": "A capture for this checkout is already in progress"},
    },
)
async def capture_order(
    provider_order_id: str,
    body: CaptureBody,
    service: Payments,
    response: Response,
) -> PaymentOutcome:
    """Capture and reconcile an approved PayPal order.

    Succeeded, stock-conflict and failed attempts all return 200 with the
    outcome; the storefront reads ``state`` and ``notification``.

    Args:
        provider_order_id: PayPal order id.
        body: Payer id and checkout context.
        service: Payment service.
        response: Response used to set 409 for duplicate captures.

    Returns:
        PaymentOutcome: Result of the attempt.
    """
    request = CaptureRequest(provider_order_id=provider_order_id, payer_id=body.payer_id, context=body.context)
    outcome = await service.capture(request)
    if outcome.state is ReconciliationState.IN_PROGRESS:
        response.status_code = status.HTTP_409_CONFLICT
    return outcome


@router.post(
    "/errors",
    response_model=Notification,
    summary="Report PayPal error",
    description="Records an error from the buttons' onError callback and returns the message to display.",
)
async def report_error(report: ProviderErrorReport, service: Payments) -> Notification:
    """Log a PayPal SDK error and return the notification to show."""
    return service.report_provider_error(report)
