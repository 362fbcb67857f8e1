"""Verification service - orchestrates the email code flow."""

import logging
import secrets
from datetime import timedelta

from auth.config import AuthConfig
from auth.exceptions import (
    CodeExpiredError,
    CodeMismatchError,
    EmailSendFailedError,
    InvalidDomainError,
    NoPendingCodeError,
)
from auth.rate_limiter import RateLimiter
from core import templates
from core.config import PenpalsConfig
from core.models import PendingCode, User, normalize_email
from core.notifier import Notifier
from core.store import DocumentStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def generate_code() -> str:
    """Uniformly random 6-digit code in 100000..999999."""
    return str(100000 + secrets.randbelow(900000))


class VerificationService:
    """Issues and checks one-time email codes.

    Handles:
    - Code requests (domain policy, optional rate limit, email send)
    - Code verification (expiry, mismatch, user upsert)
    - Periodic purge of expired codes
    """

    def __init__(
        self,
        config: AuthConfig,
        app_config: PenpalsConfig,
        store: DocumentStore,
        notifier: Notifier,
        rate_limiter: RateLimiter | None = None,
    ):
        self._config = config
        self._app_config = app_config
        self._store = store
        self._notifier = notifier
        self._rate_limiter = rate_limiter
        self._expiry = timedelta(minutes=config.code_expiry_minutes)

    def request_code(self, email: str) -> None:
        """Issue a fresh code for email and send it.

        Flow:
        1. Normalize and check domain policy
        2. Check per-email rate limit (when configured)
        3. Store code, replacing any pending one
        4. Send email

        The pending code is kept even if the send fails; the caller retries
        by requesting again, which overwrites it.

        Raises:
            InvalidDomainError: If the address is outside the allowed domain.
            RateLimitedError: If too many codes were requested recently.
            EmailSendFailedError: If the gateway did not accept the email.
        """
        email = normalize_email(email)

        if not self._config.is_allowed_email(email):
            logger.info(f"Rejected code request for {email}: domain not allowed")
            raise InvalidDomainError(self._config.allowed_email_domain)

        if self._rate_limiter is not None:
            self._rate_limiter.check_rate_limit(email)

        code = generate_code()
        with self._store.transaction() as db:
            db.pending_codes[email] = PendingCode(code=code, issued_at=now_utc())

        logger.info(f"Verification code issued for {email}")

        template = templates.verification_code(
            code, self._config.code_expiry_minutes, self._app_config
        )
        if not self._notifier.send(email, template):
            raise EmailSendFailedError(f"Failed to send verification email to {email}")

    def verify_code(self, email: str, code: str) -> User:
        """Check code and return the (possibly new) user.

        Flow:
        1. Count the attempt (when rate limiting is configured)
        2. Lookup pending code
        3. Expired: delete it and fail
        4. Mismatch: keep it and fail (user may retry)
        5. Match: delete it, upsert user, stamp last_login

        Raises:
            NoPendingCodeError: If no code was requested for this email.
            CodeExpiredError: If the code is older than the expiry window.
            CodeMismatchError: If the code is wrong.
            RateLimitedError: If too many codes were checked recently.
        """
        email = normalize_email(email)

        if self._rate_limiter is not None:
            self._rate_limiter.check_verify_attempts(email)

        code = code.strip()
        now = now_utc()
        expired = False

        with self._store.transaction() as db:
            pending = db.pending_codes.get(email)

            if pending is None:
                raise NoPendingCodeError("No verification code requested for this email")

            if pending.is_expired(now, self._expiry):
                # Deletion must commit, so the error is raised after the block
                del db.pending_codes[email]
                expired = True
            elif not secrets.compare_digest(pending.code, code):
                raise CodeMismatchError("Invalid verification code")
            else:
                del db.pending_codes[email]
                user = db.users.get(email)
                created = user is None
                if created:
                    user = User.create(email, now)
                    db.users[email] = user
                user.last_login = now

        if expired:
            logger.info(f"Expired verification code discarded for {email}")
            raise CodeExpiredError("Code expired")

        if self._rate_limiter is not None:
            self._rate_limiter.reset_rate_limit(email)

        logger.info(f"Verified {email} ({'new user' if created else 'returning user'})")
        return user.model_copy()

    def sweep_expired_codes(self) -> int:
        """Delete every expired pending code.

        The document is only written when something was removed.

        Returns:
            Number of codes removed.
        """
        now = now_utc()
        with self._store.transaction() as db:
            stale = [
                email
                for email, pending in db.pending_codes.items()
                if pending.is_expired(now, self._expiry)
            ]
            for email in stale:
                del db.pending_codes[email]

        if stale:
            logger.info(f"Swept {len(stale)} expired verification codes")
        return len(stale)
