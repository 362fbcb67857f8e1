"""User domain model."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from utils.timezone import coerce_timestamp, ensure_utc


def normalize_email(email: str) -> str:
    """Canonical form used as the user key: trimmed and lowercased."""
    return email.strip().lower()


class User(BaseModel):
    """A verified penpal.

    Invariant: matched is True exactly when partner_email is set.
    Mutate pairing state only through pair_with() / unpair().
    """

    email: str
    intro: str = ""
    matched: bool = False
    partner_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("partner_email", "partnerEmail", "partnerId"),
    )
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
    )
    last_login: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("last_login", "lastLogin"),
    )

    @field_validator("created_at", "last_login", mode="before")
    @classmethod
    def _accept_epoch_ms(cls, value):
        return coerce_timestamp(value)

    @field_validator("created_at", "last_login")
    @classmethod
    def _as_utc(cls, value):
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_pairing(self) -> "User":
        if self.matched != (self.partner_email is not None):
            raise ValueError(
                f"User {self.email}: matched={self.matched} "
                f"but partner_email={self.partner_email!r}"
            )
        return self

    @classmethod
    def create(cls, email: str, now: datetime) -> "User":
        """Fresh, unmatched user with no introduction."""
        return cls(email=normalize_email(email), created_at=now)

    @property
    def has_intro(self) -> bool:
        return self.intro != ""

    def pair_with(self, partner_email: str) -> None:
        self.matched = True
        self.partner_email = partner_email

    def unpair(self) -> None:
        """Drop the partner and clear the intro, forcing a fresh one before the next match."""
        self.matched = False
        self.partner_email = None
        self.intro = ""
