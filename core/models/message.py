"""Message domain models."""

import secrets
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from utils.timezone import coerce_timestamp, ensure_utc, now_utc, parse_timestamp


def new_message_id(created_at: datetime) -> str:
    """Creation-time-derived id: epoch milliseconds plus a random suffix."""
    return f"{int(created_at.timestamp() * 1000)}-{secrets.token_hex(4)}"


class Message(BaseModel):
    """A letter between two matched users, as stored.

    Immutable; the scheduler records notified_at by replacing the stored
    instance with an updated copy.
    """

    id: str
    sender: str = Field(validation_alias=AliasChoices("sender", "from"))
    recipient: str = Field(validation_alias=AliasChoices("recipient", "to"))
    content: str
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt", "timestamp"),
    )
    deliver_at: datetime = Field(
        validation_alias=AliasChoices("deliver_at", "deliverAt", "deliveryTime"),
    )
    notified_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("notified_at", "notifiedAt"),
    )

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _legacy_notification_flag(cls, data):
        # Legacy documents carry a notificationSent flag the old server never
        # set to true; its in-process timer did the sending. A legacy letter
        # whose delivery time has passed was already announced.
        if not isinstance(data, dict) or "notificationSent" not in data:
            return data
        if data.get("notified_at") or data.get("notifiedAt"):
            return data

        deliver_at = data.get("deliveryTime", data.get("deliver_at"))
        due = parse_timestamp(deliver_at)
        if data["notificationSent"] or (due is not None and due <= now_utc()):
            data = dict(data)
            data["notified_at"] = deliver_at
        return data

    @field_validator("created_at", "deliver_at", "notified_at", mode="before")
    @classmethod
    def _accept_epoch_ms(cls, value):
        return coerce_timestamp(value)

    @field_validator("created_at", "deliver_at", "notified_at")
    @classmethod
    def _as_utc(cls, value):
        return ensure_utc(value) if value is not None else None

    def is_delivered(self, now: datetime) -> bool:
        return now >= self.deliver_at

    def is_between(self, email_a: str, email_b: str) -> bool:
        """True if exchanged between the two addresses, either direction."""
        return {self.sender, self.recipient} == {email_a, email_b}

    def view_for(self, viewer: str, now: datetime) -> "MessageView":
        """Project this message for one participant, redacting undelivered inbound content."""
        delivered = self.is_delivered(now)
        visible = delivered or self.sender == viewer
        return MessageView(
            id=self.id,
            sender=self.sender,
            recipient=self.recipient,
            content=self.content if visible else None,
            created_at=self.created_at,
            deliver_at=self.deliver_at,
            delivered=delivered,
        )


class MessageView(BaseModel):
    """A message as one participant sees it."""

    id: str
    sender: str
    recipient: str
    content: str | None
    created_at: datetime
    deliver_at: datetime
    delivered: bool
