"""
Match registry: the one-partner-at-a-time pairing state machine.

A user is either unmatched or paired with exactly one partner who is paired
back. Both sides of every transition are written in a single store
transaction so the symmetry invariant never shows a half-applied state.
"""

import logging
from datetime import datetime, timezone

from core.event_bus import EventBus
from core.events import UsersMatched
from core.exceptions import AlreadyMatchedError, SelfMatchError, UnknownUserError
from core.models import MatchSummary, User, normalize_email
from core.store import DocumentStore

logger = logging.getLogger(__name__)

_NO_MESSAGES = datetime.min.replace(tzinfo=timezone.utc)


def pair_key(email_a: str, email_b: str) -> tuple[str, str]:
    """Order-independent key identifying a pair."""
    return tuple(sorted((email_a, email_b)))


class MatchRegistry:
    """Creates and dissolves pairings; lists matches for admins."""

    def __init__(self, store: DocumentStore, event_bus: EventBus):
        self.store = store
        self.event_bus = event_bus

    def match(self, email_a: str, email_b: str) -> tuple[User, User]:
        """
        Pair two unmatched users.

        Both records are updated in one write, then a UsersMatched event
        triggers the match notification emails (best effort).

        Returns:
            The two updated users, in argument order

        Raises:
            UnknownUserError: If either user does not exist
            SelfMatchError: If both emails are the same
            AlreadyMatchedError: If either user already has a partner
        """
        email_a = normalize_email(email_a)
        email_b = normalize_email(email_b)

        with self.store.transaction() as db:
            user_a = db.users.get(email_a)
            user_b = db.users.get(email_b)

            if user_a is None:
                raise UnknownUserError(email_a)
            if user_b is None:
                raise UnknownUserError(email_b)
            if email_a == email_b:
                raise SelfMatchError(email_a)
            for user in (user_a, user_b):
                if user.matched:
                    raise AlreadyMatchedError(user.email)

            user_a.pair_with(email_b)
            user_b.pair_with(email_a)
            matched = (user_a.model_copy(), user_b.model_copy())

        logger.info(f"Matched {email_a} with {email_b}")
        self.event_bus.publish(UsersMatched(user_a=matched[0], user_b=matched[1]))
        return matched

    def end_conversation(self, email: str) -> User:
        """
        Dissolve the user's current pairing.

        Both sides are reset to unmatched with an empty intro, forcing a
        fresh introduction before the next match. If the partner record is
        missing, only the requester is reset. Calling this on an unmatched
        user simply clears their intro.

        Returns:
            The requester after reset

        Raises:
            UnknownUserError: If the requester does not exist
        """
        email = normalize_email(email)

        with self.store.transaction() as db:
            user = db.users.get(email)
            if user is None:
                raise UnknownUserError(email)

            partner_email = user.partner_email
            user.unpair()

            if partner_email is not None:
                partner = db.users.get(partner_email)
                if partner is None:
                    logger.warning(
                        f"Partner {partner_email} of {email} missing; resetting requester only"
                    )
                else:
                    partner.unpair()

            updated = user.model_copy()

        logger.info(f"Conversation ended by {email} (partner: {partner_email})")
        return updated

    def unmatched_with_intro(self) -> list[User]:
        """Users waiting for a match: unmatched and with an introduction."""
        db = self.store.snapshot()
        return [u for u in db.users.values() if not u.matched and u.has_intro]

    def active_matches(self) -> list[MatchSummary]:
        """
        One summary per active pair, most recent conversation first.

        Pairs with no messages sort last.
        """
        db = self.store.snapshot()
        seen: set[tuple[str, str]] = set()
        summaries = []

        for user in db.users.values():
            if not user.matched:
                continue
            key = pair_key(user.email, user.partner_email)
            if key in seen:
                continue
            seen.add(key)

            conversation = db.conversation(user.email, user.partner_email)
            summaries.append(MatchSummary(
                user_a=user.email,
                user_b=user.partner_email,
                message_count=len(conversation),
                last_message_at=conversation[-1].created_at if conversation else None,
            ))

        summaries.sort(key=lambda s: s.last_message_at or _NO_MESSAGES, reverse=True)
        return summaries
