"""
User service for profile lookup and introductions.

Users are created by the verification flow; this service only reads them
and manages the introduction that admins match on.
"""

import logging

from core.config import PenpalsConfig
from core.event_bus import EventBus
from core.events import IntroSubmitted
from core.exceptions import ContentTooShortError, UnknownUserError
from core.models import User, normalize_email
from core.store import DocumentStore

logger = logging.getLogger(__name__)


class UserService:
    """Service for user profile operations."""

    def __init__(self, config: PenpalsConfig, store: DocumentStore, event_bus: EventBus):
        self.config = config
        self.store = store
        self.event_bus = event_bus

    def get_user(self, email: str) -> User:
        """
        Get user by email.

        Raises:
            UnknownUserError: If no verified user has this email
        """
        email = normalize_email(email)
        user = self.store.snapshot().users.get(email)
        if user is None:
            raise UnknownUserError(email)
        return user

    def submit_intro(self, email: str, intro: str) -> User:
        """
        Set the user's introduction and notify the admin.

        Args:
            email: User email
            intro: Introduction text, at least min_intro_length characters

        Returns:
            Updated user

        Raises:
            UnknownUserError: If user not found
            ContentTooShortError: If intro is too short
        """
        email = normalize_email(email)
        intro = intro.strip()

        with self.store.transaction() as db:
            user = db.users.get(email)
            if user is None:
                raise UnknownUserError(email)
            if len(intro) < self.config.min_intro_length:
                raise ContentTooShortError("Introduction", self.config.min_intro_length)
            user.intro = intro
            updated = user.model_copy()

        logger.info(f"Introduction submitted by {email}")
        self.event_bus.publish(IntroSubmitted(user=updated))
        return updated

    def stats(self) -> dict[str, int]:
        """Counts for the informational stats endpoint."""
        db = self.store.snapshot()
        users = list(db.users.values())
        return {
            "users": len(users),
            "matched_users": sum(1 for u in users if u.matched),
            "waiting_for_match": sum(1 for u in users if not u.matched and u.has_intro),
            "messages": len(db.messages),
            "pending_codes": len(db.pending_codes),
        }
