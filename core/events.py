"""
Domain events for penpals.

Immutable event objects that represent committed state changes. Services
publish what happened; handlers send emails and arm delivery jobs without
the publisher knowing who's listening.

Events carry the full domain objects as they were at commit time so
handlers don't need to re-read the store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from core.models import Message, User
from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class PenpalsEvent:
    """Base class for all penpals domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


@dataclass(frozen=True)
class UsersMatched(PenpalsEvent):
    """Two users were paired by an admin."""
    user_a: User
    user_b: User


@dataclass(frozen=True)
class IntroSubmitted(PenpalsEvent):
    """A user submitted (or replaced) their introduction and awaits a match."""
    user: User


@dataclass(frozen=True)
class MessageSent(PenpalsEvent):
    """A message was appended to the ledger and awaits delivery."""
    message: Message
