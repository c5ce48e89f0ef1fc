"""Shared health and error schemas."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness probe response."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_now)
    version: str = Field(default="0.1.0", description="API version")


class CheckResult(BaseModel):
    """Outcome of one dependency check in the readiness probe."""

    name: str
    healthy: bool
    latency_ms: float | None = None
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness probe response with per-dependency results."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_now)
    checks: list[CheckResult] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """One entry of an error response's details."""

    loc: list[str] | None = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Body of every error the API returns."""

    error: str = Field(description="Error type or category")
    message: str = Field(description="Human-readable error description")
    details: list[ErrorDetail] | None = None
    request_id: str | None = None
    timestamp: datetime = Field(default_factory=_now)

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        """Build an error response from exception fields."""
        error_details = None
        if details:
            error_details = [
                ErrorDetail(loc=d.get("loc"), msg=d.get("msg", str(d)), type=d.get("type", "error"))
                for d in details
            ]
        return cls(error=error_type, message=message, details=error_details, request_id=request_id)
