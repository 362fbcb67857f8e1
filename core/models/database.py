"""Database aggregate root: the whole persisted document."""

from pydantic import AliasChoices, BaseModel, Field

from core.models.message import Message
from core.models.pending_code import PendingCode
from core.models.user import User


class Database(BaseModel):
    """Users, pending codes, and messages, read and written as one document."""

    users: dict[str, User] = Field(default_factory=dict)
    pending_codes: dict[str, PendingCode] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("pending_codes", "pendingCodes"),
    )
    messages: list[Message] = Field(default_factory=list)

    def conversation(self, email_a: str, email_b: str) -> list[Message]:
        """All messages between two users, either direction, oldest first."""
        return sorted(
            (m for m in self.messages if m.is_between(email_a, email_b)),
            key=lambda m: m.created_at,
        )

    def find_message(self, message_id: str) -> tuple[int, Message] | None:
        """Locate a message by id. Returns (index, message) or None."""
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index, message
        return None
