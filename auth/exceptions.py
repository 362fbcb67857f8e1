"""Typed exceptions for verification failures."""

from core.exceptions import PenpalsError, UpstreamError, ValidationError


class VerificationError(ValidationError):
    """Base class for verification-code failures."""


class InvalidDomainError(VerificationError):
    """Email is outside the allowed institutional domain."""

    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(f"Must use a @{domain} email address")


class NoPendingCodeError(VerificationError):
    """No verification code has been requested for this email."""


class CodeExpiredError(VerificationError):
    """
    Code is older than the expiry window.

    The stale entry is deleted; a new code must be requested.
    """


class CodeMismatchError(VerificationError):
    """
    Submitted code does not match the pending one.

    The pending entry is retained so the user can retry.
    """


class EmailSendFailedError(UpstreamError):
    """Verification email could not be delivered. Caller should retry."""


class RateLimitedError(PenpalsError):
    """Too many attempts. Client should wait before retrying."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")


class NotAuthenticatedError(PenpalsError):
    """Admin credential missing or wrong."""
