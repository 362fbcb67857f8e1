"""Core domain models."""

from core.models.user import User, normalize_email
from core.models.pending_code import PendingCode
from core.models.message import Message, MessageView, new_message_id
from core.models.database import Database
from core.models.match import MatchSummary

__all__ = [
    # User
    "User", "normalize_email",
    # PendingCode
    "PendingCode",
    # Message
    "Message", "MessageView", "new_message_id",
    # Aggregate
    "Database",
    # Admin
    "MatchSummary",
]
