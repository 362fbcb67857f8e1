"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import (
    CodeExpiredError,
    CodeMismatchError,
    InvalidDomainError,
    NoPendingCodeError,
    NotAuthenticatedError,
    RateLimitedError,
)
from core.exceptions import (
    ConflictError,
    ContentTooShortError,
    NotFoundError,
    NotMatchedError,
    PenpalsError,
    PersistenceError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
_ERROR_MAP: list[tuple[type[PenpalsError], int, str]] = [
    (NotAuthenticatedError, 401, ErrorCodes.NOT_AUTHENTICATED),
    (InvalidDomainError, 400, ErrorCodes.INVALID_DOMAIN),
    (NoPendingCodeError, 400, ErrorCodes.NO_PENDING_CODE),
    (CodeExpiredError, 400, ErrorCodes.CODE_EXPIRED),
    (CodeMismatchError, 400, ErrorCodes.CODE_MISMATCH),
    (NotMatchedError, 400, ErrorCodes.NOT_MATCHED),
    (ContentTooShortError, 400, ErrorCodes.CONTENT_TOO_SHORT),
    (ValidationError, 400, ErrorCodes.VALIDATION_ERROR),
    (NotFoundError, 404, ErrorCodes.NOT_FOUND),
    (ConflictError, 400, ErrorCodes.CONFLICT),
    (UpstreamError, 502, ErrorCodes.EMAIL_SEND_FAILED),
    (PersistenceError, 500, ErrorCodes.PERSISTENCE_ERROR),
]


def _envelope(status_code: int, code: str, message: str, headers: dict | None = None):
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=error_response(code, message).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        return _envelope(
            429,
            ErrorCodes.RATE_LIMITED,
            f"Too many requests. Please wait {exc.retry_after_seconds} seconds.",
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(PenpalsError)
    async def penpals_error_handler(request: Request, exc: PenpalsError):
        for error_type, status_code, code in _ERROR_MAP:
            if isinstance(exc, error_type):
                break
        else:
            status_code, code = 500, ErrorCodes.INTERNAL_ERROR

        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
            if isinstance(exc, PersistenceError):
                return _envelope(status_code, code, "Could not save changes, please retry")
        return _envelope(status_code, code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _envelope(422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _envelope(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
