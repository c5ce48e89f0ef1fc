"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from paybridge.api.middleware.error_handler import error_handler_middleware
from paybridge.api.routes import health, payments
from paybridge.api.routes.checkout import orders_router, router as checkout_router
from paybridge.core.checkout_state import init_checkout_state_cache, shutdown_checkout_state_cache
from paybridge.core.config import get_settings
from paybridge.core.edge import shutdown_charge_backend
from paybridge.core.paypal import shutdown_paypal_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Starts the checkout state cleanup task and closes outbound HTTP clients
    on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    if not settings.is_paypal_configured:
        logger.warning("PayPal client id not configured. PayPal payments will not work.")
    elif settings.is_paypal_sandbox:
        logger.info("PayPal running against the sandbox")

    await init_checkout_state_cache()
    logger.info("Checkout state cache initialized")

    yield

    await shutdown_checkout_state_cache()
    logger.info("Checkout state cache shutdown")
    await shutdown_paypal_client()
    await shutdown_charge_backend()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Paybridge API",
        description="PayPal checkout-to-payment reconciliation for the storefront",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handler is outermost so it sees every exception
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    app.include_router(health.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(payments.router)
    api_v1_router.include_router(checkout_router)
    api_v1_router.include_router(orders_router)

    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "paybridge.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
