"""Verification configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Verification-code configuration.

    All durations are in minutes to make configuration intuitive.
    """

    # Verification code settings
    code_expiry_minutes: int = Field(
        default=15,
        description="How long a verification code remains valid",
        ge=5,
        le=60,
    )
    code_sweep_interval_minutes: int = Field(
        default=5,
        description="How often expired codes are purged from the store",
        ge=1,
        le=60,
    )

    # Email domain policy
    allowed_email_domain: str = Field(
        default="ucsc.edu",
        description="Institutional domain every address must belong to",
        min_length=1,
    )
    allowed_test_emails: list[str] = Field(
        default_factory=list,
        description="Extra addresses accepted regardless of domain (testing)",
    )

    # Rate limiting
    rate_limit_attempts: int = Field(
        default=5,
        description="Max code requests per email per window",
        ge=1,
        le=20,
    )
    verify_attempts: int = Field(
        default=5,
        description="Max code checks per email per window",
        ge=1,
        le=20,
    )
    rate_limit_window_minutes: int = Field(
        default=15,
        description="Rate limit window duration",
        ge=5,
        le=60,
    )

    def is_allowed_email(self, email: str) -> bool:
        """Check an already-normalized address against the domain policy."""
        if email in {e.strip().lower() for e in self.allowed_test_emails}:
            return True
        return email.endswith(f"@{self.allowed_email_domain.lower()}")
