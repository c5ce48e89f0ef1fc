"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends

from paybridge.core.checkout_state import CheckoutStateCache, get_checkout_state_cache
from paybridge.services.completed_order_service import CompletedOrderService
from paybridge.services.payment_service import PaymentService, get_payment_service


def get_completed_order_service() -> CompletedOrderService:
    """Provide the completed order service."""
    return CompletedOrderService()


Payments = Annotated[PaymentService, Depends(get_payment_service)]
CheckoutStates = Annotated[CheckoutStateCache, Depends(get_checkout_state_cache)]
CompletedOrders = Annotated[CompletedOrderService, Depends(get_completed_order_service)]
