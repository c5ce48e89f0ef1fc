"""Checkout state and completed order API routes."""

from fastapi import APIRouter

from paybridge.api.deps import CheckoutStates, CompletedOrders
from paybridge.api.middleware.error_handler import NotFoundError
from paybridge.schemas.payment import CompletedOrderResponse, OrderSnapshot

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get(
    "/{checkout_token}/order",
    response_model=OrderSnapshot,
    summary="Get cached order",
    description="Returns the latest order snapshot for a checkout, including snapshots refreshed after a stock conflict.",
)
async def get_checkout_order(checkout_token: str, cache: CheckoutStates) -> OrderSnapshot:
    """Read the cached order for a checkout.

    Raises:
        NotFoundError: No snapshot is cached for the checkout.
    """
    order = cache.get(checkout_token)
    if order is None:
        raise NotFoundError("No order cached for this checkout")
    return order


@router.put(
    "/{checkout_token}/order",
    response_model=OrderSnapshot,
    summary="Update cached order",
    description="Stores the in-progress order written by the other checkout steps.",
)
async def put_checkout_order(checkout_token: str, order: OrderSnapshot, cache: CheckoutStates) -> OrderSnapshot:
    """Store the in-progress order for a checkout."""
    return cache.put(checkout_token, order)


@router.delete(
    "/{checkout_token}/order",
    status_code=204,
    summary="Discard cached order",
    description="Drops the cached order when a checkout is abandoned.",
)
async def delete_checkout_order(checkout_token: str, cache: CheckoutStates) -> None:
    """Discard the cached order for a checkout."""
    cache.discard(checkout_token)


# Completed orders router - mounted separately at /orders
orders_router = APIRouter(prefix="/orders", tags=["orders"])


@orders_router.get(
    "/completed/{order_id}",
    response_model=CompletedOrderResponse,
    summary="Get completed order",
    description="Returns the capture details saved for the confirmation page.",
)
async def get_completed_order(order_id: str, service: CompletedOrders) -> CompletedOrderResponse:
    """Read a completed order record.

    Raises:
        NotFoundError: No completed order with this id.
    """
    record = await service.get(order_id)
    if not record:
        raise NotFoundError("Order not found")
    return CompletedOrderResponse(**record)
