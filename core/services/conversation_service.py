"""
Conversation ledger: append-only letters with delayed, one-sided visibility.

A message becomes readable by its recipient only once deliver_at has
passed; the sender always sees their own words. Delivery notifications are
armed by the MessageSent handler, not here.
"""

import logging
from datetime import timedelta

from core.config import PenpalsConfig
from core.event_bus import EventBus
from core.events import MessageSent
from core.exceptions import ContentTooShortError, NotMatchedError
from core.models import Message, MessageView, new_message_id, normalize_email
from core.store import DocumentStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class ConversationLedger:
    """Service for sending and viewing penpal letters."""

    def __init__(self, config: PenpalsConfig, store: DocumentStore, event_bus: EventBus):
        self.config = config
        self.store = store
        self.event_bus = event_bus
        self._delivery_delay = timedelta(minutes=config.delivery_delay_minutes)

    def send(self, sender: str, content: str) -> Message:
        """
        Send a letter to the sender's current partner.

        Args:
            sender: Sender email
            content: Letter text, at least min_message_length characters

        Returns:
            The stored message

        Raises:
            NotMatchedError: If sender is unknown or has no partner
            ContentTooShortError: If content is too short
        """
        sender = normalize_email(sender)

        with self.store.transaction() as db:
            user = db.users.get(sender)
            if user is None or not user.matched:
                raise NotMatchedError(sender)
            if len(content) < self.config.min_message_length:
                raise ContentTooShortError("Message", self.config.min_message_length)

            now = now_utc()
            message = Message(
                id=new_message_id(now),
                sender=sender,
                recipient=user.partner_email,
                content=content,
                created_at=now,
                deliver_at=now + self._delivery_delay,
            )
            db.messages.append(message)

        logger.info(
            f"Message {message.id} from {sender} to {message.recipient}, "
            f"deliverable at {message.deliver_at.isoformat()}"
        )
        self.event_bus.publish(MessageSent(message=message))
        return message

    def view(self, email: str) -> list[MessageView]:
        """
        The user's conversation with their current partner, oldest first.

        Inbound letters that have not reached deliver_at have content=None.
        Unknown or unmatched users get an empty list.
        """
        email = normalize_email(email)
        db = self.store.snapshot()

        user = db.users.get(email)
        if user is None or not user.matched:
            return []

        now = now_utc()
        return [m.view_for(email, now) for m in db.conversation(email, user.partner_email)]

    def conversation_between(self, email_a: str, email_b: str) -> list[Message]:
        """
        Every message between two users, unredacted, oldest first.

        Admin oversight only: bypasses delivery gating.
        """
        db = self.store.snapshot()
        return db.conversation(normalize_email(email_a), normalize_email(email_b))
