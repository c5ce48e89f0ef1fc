"""Client for the charge edge function that records PayPal payments."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from paybridge.core.config import get_settings
from paybridge.core.errors import GenericBackendError, StockConflictError
from paybridge.schemas.payment import BackendErrorBody, ChargeRequest

logger = logging.getLogger(__name__)


class ChargeBackend:
    """Submits charge requests to the Supabase edge function.

    Error responses are parsed into :class:`BackendErrorBody`; stock
    conflicts raise :class:`StockConflictError`, every other failure raises
    :class:`GenericBackendError`.
    """

    def __init__(
        self,
        function_url: str,
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.function_url = function_url
        self.api_key = api_key
        # The edge function governs its own processing time
        self._client = http_client or httpx.AsyncClient(timeout=None)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def submit_charge(self, charge: ChargeRequest) -> dict[str, Any]:
        """Submit a charge request.

        Args:
            charge: Payload built from the captured order.

        Returns:
            dict: Backend response body with order fields and items.

        Raises:
            StockConflictError: Some items are no longer available.
            GenericBackendError: Any other failure.
        """
        try:
            response = await self._client.post(
                self.function_url,
                json=charge.to_payload(),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "apikey": self.api_key,
                },
            )
        except httpx.HTTPError as e:
            logger.error("Charge request for order %s failed: %s", charge.order_id, str(e))
            raise GenericBackendError("Could not reach the payment backend") from e

        if response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = {}
            return body if isinstance(body, dict) else {"data": body}

        raise parse_error_response(response)


def parse_error_response(response: httpx.Response) -> Exception:
    """Turn a non-2xx charge response into the matching backend error."""
    try:
        raw = response.json()
        body = BackendErrorBody.model_validate(raw)
    except (ValueError, ValidationError) as e:
        logger.warning("Unparseable charge error body (status %d): %s", response.status_code, str(e))
        return GenericBackendError("Payment backend returned an unexpected error", status_code=response.status_code)

    if body.kind == "stock_conflict" and body.unavailable_items:
        logger.info("Charge rejected with %d unavailable items", len(body.unavailable_items))
        return StockConflictError(body)

    logger.warning("Charge rejected (status %d): %s", response.status_code, body.message)
    return GenericBackendError(body.message or "Payment backend rejected the charge", status_code=response.status_code)


_charge_backend: ChargeBackend | None = None


def get_charge_backend() -> ChargeBackend:
    """Get the process-wide charge backend client."""
    global _charge_backend
    if _charge_backend is None:
        settings = get_settings()
        _charge_backend = ChargeBackend(
            function_url=settings.charge_function_url,
            api_key=settings.supabase_secret_key,
        )
    return _charge_backend


async def shutdown_charge_backend() -> None:
    """Close the charge backend client if one was created."""
    global _charge_backend
    if _charge_backend is not None:
        await _charge_backend.aclose()
        _charge_backend = None
