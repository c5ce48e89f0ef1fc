"""PayPal Orders v2 REST client and singleton."""

import logging
import time
from typing import Any

import httpx

from paybridge.core.config import get_settings
from paybridge.core.errors import ProviderError

logger = logging.getLogger(__name__)

# Refresh the OAuth token this many seconds before PayPal expires it
TOKEN_EXPIRY_MARGIN_SECONDS = 60


def json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a JSON object body, or None for empty, non-JSON or non-object bodies."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


class PayPalClient:
    """Thin async client for the PayPal Orders API.

    Uses OAuth2 client credentials; the access token is cached until
    shortly before it expires.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        api_base: str = "https://api-m.sandbox.paypal.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_base = api_base.rstrip("/")
        self._client = http_client or httpx.AsyncClient(base_url=self.api_base, timeout=timeout)
        self._access_token: str | None = None
        self._token_expires_at: float = 0.0

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _get_access_token(self) -> str:
        if self._access_token and time.time() < self._token_expires_at:
            return self._access_token

        if not self.client_id or not self.client_secret:
            raise ProviderError("PayPal is not configured. Please set PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET.")

        try:
            response = await self._client.post(
                "/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
            )
        except httpx.HTTPError as e:
            logger.error("PayPal token request failed: %s", str(e))
            raise ProviderError("Could not reach PayPal") from e

        if response.is_error:
            logger.error("PayPal token request rejected with status %d", response.status_code)
            raise ProviderError("PayPal rejected the client credentials", status_code=response.status_code)

        body = json_object(response)
        access_token = body.get("access_token") if body else None
        if not access_token or not isinstance(access_token, str):
            logger.error("PayPal token response did not contain an access token")
            raise ProviderError("PayPal returned an invalid token response", status_code=response.status_code)

        try:
            expires_in = int(body.get("expires_in", 0))
        except (TypeError, ValueError):
            expires_in = 0
        self._access_token = access_token
        self._token_expires_at = time.time() + max(0, expires_in - TOKEN_EXPIRY_MARGIN_SECONDS)
        return self._access_token

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        token = await self._get_access_token()
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                    "Prefer": "return=representation",
                },
            )
        except httpx.HTTPError as e:
            logger.error("PayPal request %s %s failed: %s", method, path, str(e))
            raise ProviderError("Could not reach PayPal") from e

        if response.is_error:
            debug_id = response.headers.get("paypal-debug-id")
            body = json_object(response)
            detail = (body.get("message") if body else None) or response.text
            logger.error(
                "PayPal %s %s returned %d (debug_id=%s): %s",
                method,
                path,
                response.status_code,
                debug_id,
                detail,
            )
            raise ProviderError(
                f"PayPal request failed: {detail}",
                status_code=response.status_code,
                debug_id=debug_id,
            )

        body = json_object(response)
        if body is None:
            logger.error("PayPal %s %s returned a non-object body (status %d)", method, path, response.status_code)
            raise ProviderError(
                "PayPal returned an unexpected response",
                status_code=response.status_code,
                debug_id=response.headers.get("paypal-debug-id"),
            )
        return body

    async def create_order(
        self,
        value: str,
        currency_code: str,
        description: str,
        intent: str = "capture",
    ) -> dict[str, Any]:
        """Create a PayPal order with a single purchase unit.

        Args:
            value: Amount in major units, two decimals.
            currency_code: Uppercase ISO currency code.
            description: Purchase unit description.
            intent: Order intent, ``capture`` or ``authorize``.

        Returns:
            dict: PayPal order representation.
        """
        return await self._request(
            "POST",
            "/v2/checkout/orders",
            json={
                "intent": intent.upper(),
                "purchase_units": [
                    {
                        "amount": {"value": value, "currency_code": currency_code},
                        "description": description,
                    }
                ],
            },
        )

    async def capture_order(self, order_id: str) -> dict[str, Any]:
        """Capture an approved PayPal order.

        Args:
            order_id: PayPal order id.

        Returns:
            dict: Capture details.
        """
        return await self._request("POST", f"/v2/checkout/orders/{order_id}/capture", json={})


_paypal_client: PayPalClient | None = None


def get_paypal_client() -> PayPalClient:
    """Get the process-wide PayPal client, creating it on first use."""
    global _paypal_client
    if _paypal_client is None:
        settings = get_settings()
        if not settings.is_paypal_configured:
            logger.warning("PayPal client id not configured. PayPal payments will not work.")
        _paypal_client = PayPalClient(
            client_id=settings.paypal_client_id,
            client_secret=settings.paypal_client_secret,
            api_base=settings.paypal_api_base,
            timeout=settings.http_timeout_seconds,
        )
    return _paypal_client


async def shutdown_paypal_client() -> None:
    """Close the PayPal client if one was created."""
    global _paypal_client
    if _paypal_client is not None:
        await _paypal_client.aclose()
        _paypal_client = None
