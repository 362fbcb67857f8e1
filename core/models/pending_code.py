"""Pending verification code model."""

from datetime import datetime, timedelta

from pydantic import AliasChoices, BaseModel, Field, field_validator

from utils.timezone import coerce_timestamp, ensure_utc


class PendingCode(BaseModel):
    """A one-time code awaiting verification. At most one per email."""

    code: str = Field(..., pattern=r"^\d{6}$")
    issued_at: datetime = Field(
        validation_alias=AliasChoices("issued_at", "issuedAt", "timestamp"),
    )

    @field_validator("issued_at", mode="before")
    @classmethod
    def _accept_epoch_ms(cls, value):
        return coerce_timestamp(value)

    @field_validator("issued_at")
    @classmethod
    def _as_utc(cls, value):
        return ensure_utc(value)

    def is_expired(self, now: datetime, expiry: timedelta) -> bool:
        return now - self.issued_at > expiry
