"""Rate limiting for the verification code flow.

Uses Valkey with sliding window TTL - each attempt resets the expiry, so
hammering the endpoint extends the lockout. Code requests and code checks
are counted under separate keys: a 6-digit code must not be guessable by
retrying within its expiry window.
"""

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError


class RateLimiter:
    """Per-email throttle for verification code requests and checks."""

    KEY_PREFIX = "ratelimit:verification_code:"
    VERIFY_KEY_PREFIX = "ratelimit:verification_attempt:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config
        self._window_seconds = config.rate_limit_window_minutes * 60

    def _key(self, email: str, prefix: str = KEY_PREFIX) -> str:
        return f"{prefix}{email.lower()}"

    def _count(self, key: str, limit: int) -> None:
        count = self._valkey.incr(key)
        self._valkey.expire(key, self._window_seconds)

        if count > limit:
            retry_after = max(self._valkey.ttl(key), 1)
            raise RateLimitedError(retry_after_seconds=retry_after)

    def check_rate_limit(self, email: str) -> None:
        """Count this code request and reject it if the window is exhausted.

        Raises:
            RateLimitedError: If rate limit exceeded.
        """
        self._count(self._key(email), self._config.rate_limit_attempts)

    def check_verify_attempts(self, email: str) -> None:
        """Count this code check and reject it if the window is exhausted.

        Raises:
            RateLimitedError: If too many checks were made recently.
        """
        self._count(
            self._key(email, self.VERIFY_KEY_PREFIX),
            self._config.verify_attempts,
        )

    def reset_rate_limit(self, email: str) -> None:
        """Reset both counters after a successful verification."""
        self._valkey.delete(self._key(email))
        self._valkey.delete(self._key(email, self.VERIFY_KEY_PREFIX))
