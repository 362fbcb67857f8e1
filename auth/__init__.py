"""Email verification: one-time codes for institutional addresses."""

from auth.exceptions import (
    VerificationError,
    InvalidDomainError,
    NoPendingCodeError,
    CodeExpiredError,
    CodeMismatchError,
    EmailSendFailedError,
    RateLimitedError,
    NotAuthenticatedError,
)
from auth.types import CodeRequest, CodeConfirmation
from auth.config import AuthConfig
from auth.rate_limiter import RateLimiter
from auth.service import VerificationService, generate_code
from auth.api import create_auth_router
