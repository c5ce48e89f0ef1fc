"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("STORE_ID", "store-test")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAYPAL_CLIENT_ID", "paypal-test-client-id")
os.environ.setdefault("PAYPAL_CLIENT_SECRET", "paypal-test-client-secret")
os.environ.setdefault("TRACKING_ENDPOINT_URL", "")


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from paybridge.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def payment_context_data() -> dict[str, Any]:
    """Checkout context as the storefront posts it."""
    return {
        "amount_cents": 25990,
        "currency": "mxn",
        "email": "buyer@example.com",
        "name": "Ana Lopez",
        "phone": "5550001111",
        "order_id": "order-123",
        "checkout_token": "tok-abc",
        "delivery_fee": 9900,
        "shipping_address": {
            "first_name": "Ana",
            "last_name": "Lopez",
            "line1": "Av. Reforma 1",
            "city": "CDMX",
            "state": "CDMX",
            "postal_code": "06600",
            "country": "MX",
        },
        "items": [
            {"product_id": "prod-1", "variant_id": "var-1", "quantity": 2, "variant_price": 80.0, "product_name": "Boot X"},
            {"product": {"id": "prod-2", "name": "Sock Y"}, "quantity": 1, "unit_price": 0.9},
        ],
        "delivery_expectations": [{"type": "standard_delivery", "description": "Courier", "price": 99}],
    }


@pytest.fixture
def mock_payment_service() -> MagicMock:
    """Provide a mocked payment service."""
    service = MagicMock()
    service.create_order = AsyncMock()
    service.capture = AsyncMock()
    return service


@pytest.fixture
def mock_completed_order_service() -> MagicMock:
    """Provide a mocked completed order service."""
    service = MagicMock()
    service.get = AsyncMock(return_value=None)
    return service


@pytest.fixture
def client(
    mock_payment_service: MagicMock,
    mock_completed_order_service: MagicMock,
) -> Generator[TestClient, None, None]:
    """Provide a test client with service dependencies overridden.

    Args:
        mock_payment_service: Mocked payment service fixture.
        mock_completed_order_service: Mocked completed order service fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from paybridge.api.deps import get_completed_order_service
    from paybridge.main import app
    from paybridge.services.payment_service import get_payment_service

    app.dependency_overrides[get_payment_service] = lambda: mock_payment_service
    app.dependency_overrides[get_completed_order_service] = lambda: mock_completed_order_service

    with patch(
        "paybridge.api.routes.health.check_database_connection",
        AsyncMock(return_value={"healthy": True}),
    ):
        with TestClient(app) as test_client:
            yield test_client

    app.dependency_overrides.clear()
