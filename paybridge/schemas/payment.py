"""Payment Pydantic schemas for PayPal checkout and charge reconciliation."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReconciliationState(str, Enum):
    """States of a single payment attempt."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    STOCK_CONFLICT = "stock_conflict"
    FAILED = "failed"
    IN_PROGRESS = "in_progress"


class NormalizedItem(BaseModel):
    """Canonical line item produced from any cart or order line shape."""

    product_id: str = Field(default="", description="Product identifier, empty when unresolvable")
    variant_id: str | None = Field(default=None, description="Variant identifier")
    quantity: int = Field(default=0, ge=0, description="Units ordered")
    unit_price: float = Field(default=0.0, ge=0, description="Unit price in major currency units")
    product_name: str | None = Field(default=None, description="Display name, used for tracking")


class PaymentItem(NormalizedItem):
    """Normalized item that passed filtering and de-duplication."""

    @property
    def key(self) -> str:
        """Composite de-duplication key."""
        return f"{self.product_id}:{self.variant_id or ''}"


class AddressInput(BaseModel):
    """Address as the storefront checkout form sends it."""

    model_config = ConfigDict(extra="allow")

    first_name: str | None = None
    last_name: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class ChargeAddress(BaseModel):
    """Address record as the charge endpoint expects it."""

    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    name: str = ""


class PickupLocationInput(BaseModel):
    """Pickup point selected during checkout."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    name: str | None = None
    line1: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    schedule: str | None = None


class PickupLocation(BaseModel):
    """Pickup point record sent to the charge endpoint."""

    id: str | None = None
    name: str = ""
    address: str = ""
    hours: str = ""


class DeliveryExpectationInput(BaseModel):
    """Delivery option chosen during checkout."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    description: str | None = None
    price: float | None = None


class DeliveryExpectation(BaseModel):
    """Delivery expectation record sent to the charge endpoint."""

    type: str = "standard_delivery"
    description: str = ""
    estimated_days: str | None = None


class CustomerContact(BaseModel):
    """Buyer contact details."""

    email: str | None = None
    name: str | None = None
    phone: str | None = None


class ValidationItem(BaseModel):
    """Line the backend re-validates against stock and price."""

    product_id: str
    quantity: int = Field(ge=0)
    variant_id: str | None = None
    price: int = Field(ge=0, description="Unit price in minor currency units")


class ValidationData(BaseModel):
    """Data the backend uses to re-check the order before charging."""

    shipping_address: ChargeAddress | None = None
    billing_address: ChargeAddress | None = None
    items: list[ValidationItem] = Field(default_factory=list)
    discount_code: str | None = None


class ChargeRequest(BaseModel):
    """Canonical payload submitted to the charge endpoint.

    At most one of the pickup block (``delivery_method`` and
    ``pickup_locations``) or ``delivery_expectations`` is set.
    """

    store_id: str
    order_id: str | None = None
    checkout_token: str | None = None
    amount: int = Field(ge=0, description="Charge amount in minor currency units")
    currency: str
    expected_total: int = Field(ge=0, description="Caller-tracked total in minor currency units")
    delivery_fee: int = Field(default=0, ge=0, description="Delivery fee in minor currency units")
    description: str
    metadata: dict[str, str] = Field(default_factory=dict)
    receipt_email: str | None = None
    customer: CustomerContact = Field(default_factory=CustomerContact)
    validation_data: ValidationData = Field(default_factory=ValidationData)
    delivery_method: Literal["pickup"] | None = None
    pickup_locations: list[PickupLocation] | None = None
    delivery_expectations: list[DeliveryExpectation] | None = None

    @model_validator(mode="after")
    def check_delivery_exclusive(self) -> "ChargeRequest":
        """Reject payloads carrying both a pickup and a delivery block."""
        if self.pickup_locations is not None and self.delivery_expectations is not None:
            raise ValueError("pickup_locations and delivery_expectations are mutually exclusive")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the wire, dropping absent optional blocks."""
        payload = self.model_dump(mode="json", exclude_none=True)
        validation_data = self.validation_data.model_dump(mode="json", exclude_none=True)
        # Absent addresses are sent as explicit nulls
        validation_data["shipping_address"] = (
            self.validation_data.shipping_address.model_dump(mode="json")
            if self.validation_data.shipping_address
            else None
        )
        validation_data["billing_address"] = (
            self.validation_data.billing_address.model_dump(mode="json")
            if self.validation_data.billing_address
            else None
        )
        payload["validation_data"] = validation_data
        return payload


class OrderSnapshot(BaseModel):
    """Cached view of the in-progress backend order."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    store_id: str | None = None
    checkout_token: str | None = None
    currency_code: str | None = None
    subtotal: float | None = None
    discount_amount: float | None = None
    total_amount: float | None = None
    order_items: list[dict[str, Any]] = Field(default_factory=list)


class PaymentContext(BaseModel):
    """Everything the storefront knows about the checkout being paid."""

    amount_cents: float = Field(default=0, description="Requested charge in minor currency units")
    currency: str | None = Field(default=None, description="ISO currency code, any case")
    description: str | None = None
    metadata: dict[str, str] | None = None
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    order_id: str | None = None
    checkout_token: str | None = None
    expected_total: int | None = Field(default=None, ge=0, description="Independently tracked total in minor units")
    delivery_fee: int = Field(default=0, ge=0, description="Delivery fee in minor units")
    shipping_address: AddressInput | None = None
    billing_address: AddressInput | None = None
    items: list[dict[str, Any]] = Field(default_factory=list, description="Raw cart lines in any shape")
    delivery_expectations: list[DeliveryExpectationInput] = Field(default_factory=list)
    pickup_locations: list[PickupLocationInput] = Field(default_factory=list)
    required_fields_complete: bool | None = Field(
        default=None,
        description="Result of the storefront's required-field check, when it ran one",
    )

    @property
    def attempt_key(self) -> str:
        """Key identifying this checkout attempt."""
        return self.checkout_token or self.order_id or ""

    @property
    def is_pickup(self) -> bool:
        """Whether the buyer chose pickup as the delivery mode."""
        return bool(self.delivery_expectations) and self.delivery_expectations[0].type == "pickup"


class ProviderOrder(BaseModel):
    """PayPal order created for a checkout."""

    id: str = Field(description="PayPal order id")
    status: str | None = Field(default=None, description="PayPal order status")
    amount_value: str = Field(description="Amount in major units with two decimals")
    currency_code: str = Field(description="Uppercase ISO currency code")
    description: str


class CaptureBody(BaseModel):
    """Request body for capturing an approved PayPal order."""

    payer_id: str | None = Field(default=None, description="PayPal payer id from the approval callback")
    context: PaymentContext = Field(default_factory=PaymentContext)


class CaptureRequest(CaptureBody):
    """Capture request with the PayPal order id resolved."""

    provider_order_id: str


class ProviderErrorReport(BaseModel):
    """Error reported by the PayPal buttons' onError callback."""

    message: str | None = None
    checkout_token: str | None = None
    order_id: str | None = None


class ScriptOptions(BaseModel):
    """Options the storefront passes to the PayPal JS SDK loader."""

    configured: bool
    client_id: str | None = None
    currency: str
    intent: str


class Notification(BaseModel):
    """User-facing message for the storefront to display."""

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class UnavailableItem(BaseModel):
    """Item the backend could not reserve."""

    model_config = ConfigDict(extra="allow")

    product_name: str = ""
    variant_name: str | None = None
    product_id: str | None = None
    variant_id: str | None = None

    @property
    def label(self) -> str:
        """Name shown to the buyer."""
        if self.variant_name:
            return f"{self.product_name} ({self.variant_name})"
        return self.product_name


class BackendErrorBody(BaseModel):
    """Structured error returned by the charge endpoint."""

    model_config = ConfigDict(extra="allow")

    kind: Literal["stock_conflict", "generic"] = "generic"
    message: str | None = None
    unavailable_items: list[UnavailableItem] = Field(default_factory=list)
    order: OrderSnapshot | None = None
    order_id: str | None = None
    checkout_token: str | None = None
    currency_code: str | None = None
    subtotal: float | None = None
    discount_amount: float | None = None
    total_amount: float | None = None
    order_items: list[dict[str, Any]] | None = None

    @model_validator(mode="before")
    @classmethod
    def infer_kind(cls, data: Any) -> Any:
        """Treat bodies listing unavailable items as stock conflicts."""
        if isinstance(data, dict) and "kind" not in data and data.get("unavailable_items"):
            return {**data, "kind": "stock_conflict"}
        return data


class PaymentOutcome(BaseModel):
    """Result of a capture attempt."""

    state: ReconciliationState
    order_id: str | None = None
    redirect_to: str | None = None
    notification: Notification | None = None
    unavailable_items: list[UnavailableItem] = Field(default_factory=list)
    order: OrderSnapshot | None = None
    capture: dict[str, Any] | None = None


class CompletedOrderResponse(BaseModel):
    """Completed order record read by the confirmation page."""

    model_config = ConfigDict(from_attributes=True)

    order_id: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None
