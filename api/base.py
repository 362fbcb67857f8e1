"""Unified API response format and error handling."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    Every endpoint returns this structure, making client parsing predictable.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta() -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=str(uuid4()))


def success_response(data: Any) -> APIResponse:
    """Create a success response."""
    return APIResponse(success=True, data=data, error=None, meta=_meta())


def error_response(code: str, message: str) -> APIResponse:
    """Create an error response."""
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message),
        meta=_meta(),
    )


class ErrorCodes:
    """Standard error codes for consistent error handling."""

    # Authentication & Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    RATE_LIMITED = "RATE_LIMITED"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Verification
    INVALID_DOMAIN = "INVALID_DOMAIN"
    NO_PENDING_CODE = "NO_PENDING_CODE"
    CODE_EXPIRED = "CODE_EXPIRED"
    CODE_MISMATCH = "CODE_MISMATCH"

    # Matching & Messaging
    CONFLICT = "CONFLICT"
    NOT_MATCHED = "NOT_MATCHED"
    CONTENT_TOO_SHORT = "CONTENT_TOO_SHORT"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EMAIL_SEND_FAILED = "EMAIL_SEND_FAILED"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
