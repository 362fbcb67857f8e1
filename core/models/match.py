"""Match summary model for admin listings."""

from datetime import datetime

from pydantic import BaseModel


class MatchSummary(BaseModel):
    """One active pairing with its conversation stats."""

    user_a: str
    user_b: str
    message_count: int
    last_message_at: datetime | None
