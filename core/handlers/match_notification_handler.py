"""
Handler for UsersMatched events.

Emails each side of a new pair with the other side's introduction. Sends
are best effort: the pairing is already committed, so a failed email is
logged and left alone.
"""

import logging
from typing import Callable

from core import templates
from core.config import PenpalsConfig
from core.events import UsersMatched
from core.notifier import Notifier

logger = logging.getLogger(__name__)


def handle_users_matched(notifier: Notifier, config: PenpalsConfig) -> Callable:
    """
    Factory that returns a UsersMatched handler.

    Dependencies are captured at wiring time via closure.

    Args:
        notifier: Notifier instance
        config: PenpalsConfig for template rendering

    Returns:
        Handler callable that processes UsersMatched events
    """

    def handler(event: UsersMatched):
        pairs = (
            (event.user_a, event.user_b),
            (event.user_b, event.user_a),
        )
        for recipient, partner in pairs:
            sent = notifier.send(
                recipient.email,
                templates.match_notification(partner.intro, config),
            )
            if not sent:
                logger.warning(f"Match notification to {recipient.email} was not delivered")

    return handler
