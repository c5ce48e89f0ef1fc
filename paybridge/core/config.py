"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Value shipped in storefront templates before a real client id is set
PAYPAL_CLIENT_ID_PLACEHOLDER = "TU_CLIENT_ID_DE_PAYPAL"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="paybridge", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Store
    store_id: str = Field(..., description="Store identifier sent with every charge request")
    default_currency: str = Field(default="mxn", description="Currency used when a checkout does not specify one")
    thank_you_path_template: str = Field(
        default="/thank-you/{order_id}",
        description="Confirmation route the storefront navigates to after a successful payment",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    charge_function_name: str = Field(
        default="process-paypal-payment",
        description="Edge function that records and validates the charge",
    )

    # PayPal
    paypal_client_id: str = Field(default="", description="PayPal REST client id")
    paypal_client_secret: str = Field(default="", description="PayPal REST client secret")
    paypal_api_base: str = Field(
        default="https://api-m.sandbox.paypal.com",
        description="PayPal REST API base URL (sandbox or live)",
    )
    paypal_intent: str = Field(default="capture", description="PayPal order intent")

    # Checkout state cache
    checkout_state_ttl_seconds: int = Field(default=3600, description="Seconds an order snapshot stays readable")
    checkout_state_fresh_seconds: int = Field(default=120, description="Seconds an order snapshot counts as fresh")
    checkout_state_cleanup_interval_seconds: int = Field(default=300, description="Expired snapshot sweep interval")

    # Tracking
    tracking_endpoint_url: str = Field(default="", description="Optional collector URL for purchase events")

    # Outbound HTTP
    http_timeout_seconds: float = Field(default=30.0, description="Timeout for PayPal and tracking requests")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_paypal_configured(self) -> bool:
        """Check if a real PayPal client id has been provided."""
        return bool(self.paypal_client_id) and self.paypal_client_id != PAYPAL_CLIENT_ID_PLACEHOLDER

    @property
    def is_paypal_sandbox(self) -> bool:
        """Check if requests go to the PayPal sandbox."""
        return "sandbox" in self.paypal_api_base

    @property
    def charge_function_url(self) -> str:
        """Full URL of the charge edge function."""
        return f"{self.supabase_url.rstrip('/')}/functions/v1/{self.charge_function_name}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
