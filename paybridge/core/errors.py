"""Payment attempt error taxonomy.

Every error here is scoped to a single payment attempt. Validation errors
block provider order creation, provider errors come from PayPal, and backend
errors come from the charge edge function after funds were captured.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from paybridge.schemas.payment import BackendErrorBody, UnavailableItem


class PaymentError(Exception):
    """Base class for errors raised while preparing or reconciling a payment."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CheckoutValidationError(PaymentError):
    """Checkout data is incomplete; the provider order must not be created."""

    title = "Validation error"
    error_type = "checkout_validation_error"


class MissingRequiredFieldsError(CheckoutValidationError):
    """The storefront's required-field check failed."""

    title = "Missing required fields"
    error_type = "missing_required_fields"

    def __init__(self, message: str = "Please complete all required fields") -> None:
        super().__init__(message)


class PickupLocationRequiredError(CheckoutValidationError):
    """Pickup delivery was chosen but no pickup location was selected."""

    title = "Pickup location required"
    error_type = "pickup_location_required"

    def __init__(self, message: str = "Please select a pickup location before continuing.") -> None:
        super().__init__(message)


class ProviderError(PaymentError):
    """PayPal failed to create or capture an order."""

    def __init__(self, message: str, status_code: int | None = None, debug_id: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.debug_id = debug_id


class BackendError(PaymentError):
    """Base class for charge endpoint rejections."""

    kind = "generic"


class StockConflictError(BackendError):
    """The backend reported items that became unavailable before the charge."""

    kind = "stock_conflict"

    def __init__(self, body: "BackendErrorBody") -> None:
        super().__init__(body.message or "Some items are no longer available")
        self.body = body

    @property
    def unavailable_items(self) -> list["UnavailableItem"]:
        return self.body.unavailable_items


class GenericBackendError(BackendError):
    """Any other charge endpoint failure, including unparseable error bodies."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
