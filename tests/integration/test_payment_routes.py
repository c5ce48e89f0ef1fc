"""Integration tests for PayPal payment endpoints."""

from typing import Any
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from paybridge.core.errors import MissingRequiredFieldsError, PickupLocationRequiredError, ProviderError
from paybridge.schemas.payment import (
    Notification,
    PaymentOutcome,
    ProviderOrder,
    ReconciliationState,
    ScriptOptions,
    UnavailableItem,
)


class TestScriptOptions:
    """Tests for GET /api/v1/payments/paypal/config."""

    def test_returns_options(self, client: TestClient, mock_payment_service: MagicMock) -> None:
        mock_payment_service.script_options.return_value = ScriptOptions(
            configured=True, client_id="paypal-test-client-id", currency="MXN", intent="capture"
        )

        response = client.get("/api/v1/payments/paypal/config", params={"currency": "mxn"})

        assert response.status_code == 200
        assert response.json()["client_id"] == "paypal-test-client-id"
        mock_payment_service.script_options.assert_called_once_with("mxn")


class TestCreateOrder:
    """Tests for POST /api/v1/payments/paypal/orders."""

    def test_create_order_success(
        self,
        client: TestClient,
        mock_payment_service: MagicMock,
        payment_context_data: dict[str, Any],
    ) -> None:
        """Test that a valid checkout creates a PayPal order."""
        mock_payment_service.create_order.return_value = ProviderOrder(
            id="PP-1", status="CREATED", amount_value="259.90", currency_code="MXN", description="Order #order-123"
        )

        response = client.post("/api/v1/payments/paypal/orders", json=payment_context_data)

        assert response.status_code == 201
        assert response.json()["id"] == "PP-1"
        context = mock_payment_service.create_order.await_args.args[0]
        assert context.order_id == "order-123"

    def test_missing_fields_returns_422(
        self,
        client: TestClient,
        mock_payment_service: MagicMock,
        payment_context_data: dict[str, Any],
    ) -> None:
        """Test that a failed required-field check is reported without a PayPal order."""
        mock_payment_service.create_order.side_effect = MissingRequiredFieldsError()

        response = client.post(
            "/api/v1/payments/paypal/orders",
            json={**payment_context_data, "required_fields_complete": False},
        )

        data = response.json()
        assert response.status_code == 422
        assert data["error"] == "missing_required_fields"
        assert data["message"] == "Please complete all required fields"

    def test_pickup_without_location_returns_422(
        self,
        client: TestClient,
        mock_payment_service: MagicMock,
    ) -> None:
        """Test the pickup location validation error response."""
        mock_payment_service.create_order.side_effect = PickupLocationRequiredError()

        response = client.post(
            "/api/v1/payments/paypal/orders",
            json={"amount_cents": 100, "delivery_expectations": [{"type": "pickup"}]},
        )

        data = response.json()
        assert response.status_code == 422
        assert data["details"][0]["msg"] == "Pickup location required"

    def test_provider_error_returns_502(self, client: TestClient, mock_payment_service: MagicMock) -> None:
        """Test that PayPal failures map to a gateway error."""
        mock_payment_service.create_order.side_effect = ProviderError("boom", status_code=500)

        response = client.post("/api/v1/payments/paypal/orders", json={"amount_cents": 100})

        assert response.status_code == 502
        assert response.json()["error"] == "provider_error"

    def test_invalid_body_returns_422(self, client: TestClient) -> None:
        response = client.post("/api/v1/payments/paypal/orders", json={"delivery_fee": -5})

        assert response.status_code == 422


class TestCaptureOrder:
    """Tests for POST /api/v1/payments/paypal/orders/{id}/capture."""

    def test_capture_success(
        self,
        client: TestClient,
        mock_payment_service: MagicMock,
        payment_context_data: dict[str, Any],
    ) -> None:
        """Test that a successful capture returns the redirect."""
        mock_payment_service.capture.return_value = PaymentOutcome(
            state=ReconciliationState.SUCCEEDED,
            order_id="order-123",
            redirect_to="/thank-you/order-123",
            notification=Notification(title="Payment successful", description="ok"),
        )

        response = client.post(
            "/api/v1/payments/paypal/orders/PP-1/capture",
            json={"payer_id": "PAYER-1", "context": payment_context_data},
        )

        data = response.json()
        assert response.status_code == 200
        assert data["state"] == "succeeded"
        assert data["redirect_to"] == "/thank-you/order-123"
        request = mock_payment_service.capture.await_args.args[0]
        assert request.provider_order_id == "PP-1"
        assert request.payer_id == "PAYER-1"
        assert request.context.checkout_token == "tok-abc"

    def test_capture_stock_conflict(self, client: TestClient, mock_payment_service: MagicMock) -> None:
        """Test that a stock conflict is returned as an outcome, not an error."""
        mock_payment_service.capture.return_value = PaymentOutcome(
            state=ReconciliationState.STOCK_CONFLICT,
            notification=Notification(
                title="Items out of stock",
                description="The following items are out of stock: Boot X. Please remove them from your cart.",
                variant="destructive",
            ),
            unavailable_items=[UnavailableItem(product_name="Boot X")],
        )

        response = client.post("/api/v1/payments/paypal/orders/PP-1/capture", json={})

        data = response.json()
        assert response.status_code == 200
        assert data["state"] == "stock_conflict"
        assert "Boot X" in data["notification"]["description"]
        assert data["redirect_to"] is None

    def test_capture_in_progress_returns_409(self, client: TestClient, mock_payment_service: MagicMock) -> None:
        """Test that a duplicate capture is rejected with 409."""
        mock_payment_service.capture.return_value = PaymentOutcome(state=ReconciliationState.IN_PROGRESS)

        response = client.post("/api/v1/payments/paypal/orders/PP-1/capture", json={})

        assert response.status_code == 409
        assert response.json()["state"] == "in_progress"


class TestReportError:
    """Tests for POST /api/v1/payments/paypal/errors."""

    def test_report_error(self, client: TestClient, mock_payment_service: MagicMock) -> None:
        mock_payment_service.report_provider_error.return_value = Notification(
            title="PayPal error", description="Try again", variant="destructive"
        )

        response = client.post("/api/v1/payments/paypal/errors", json={"message": "popup closed"})

        assert response.status_code == 200
        assert response.json()["title"] == "PayPal error"
