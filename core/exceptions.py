"""
Typed exceptions for penpals domain failures.

Five families map onto HTTP status classes in api/errors.py:
- ValidationError: malformed input, short content, policy violations (400)
- NotFoundError: unknown email/user (404)
- ConflictError: pairing rules violated (400)
- UpstreamError: a downstream send failed where the send IS the operation (502)
- PersistenceError: the store could not be read or written (500)
"""


class PenpalsError(Exception):
    """Base class for all domain errors."""


class ValidationError(PenpalsError):
    """Input violates a documented constraint."""


class NotFoundError(PenpalsError):
    """Referenced entity does not exist."""


class ConflictError(PenpalsError):
    """Operation conflicts with the current pairing state."""


class UpstreamError(PenpalsError):
    """A downstream collaborator (email gateway) failed."""


class PersistenceError(PenpalsError):
    """Store unreachable, unreadable, or write failed.

    The in-memory mutation that triggered the write is not durable.
    """


class UnknownUserError(NotFoundError):
    """No verified user with this email."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User {email} not found")


class SelfMatchError(ConflictError):
    """A user cannot be matched with themselves."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Cannot match {email} with themselves")


class AlreadyMatchedError(ConflictError):
    """One of the users already has a partner."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User {email} is already matched")


class NotMatchedError(ValidationError):
    """Sender has no current partner."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User {email} is not matched")


class ContentTooShortError(ValidationError):
    """Text field is shorter than the configured minimum."""

    def __init__(self, field: str, min_length: int):
        self.field = field
        self.min_length = min_length
        super().__init__(f"{field} must be at least {min_length} characters")
