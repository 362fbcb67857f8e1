"""
Handler for IntroSubmitted events.

Tells the admin that someone is waiting for a match. No-op when no admin
address is configured.
"""

import logging
from typing import Callable

from core import templates
from core.config import PenpalsConfig
from core.events import IntroSubmitted
from core.notifier import Notifier

logger = logging.getLogger(__name__)


def handle_intro_submitted(notifier: Notifier, config: PenpalsConfig) -> Callable:
    """Factory that returns an IntroSubmitted handler."""

    def handler(event: IntroSubmitted):
        if not config.admin_email:
            logger.debug("No admin email configured, skipping signup notification")
            return

        user = event.user
        notifier.send(
            config.admin_email,
            templates.admin_new_signup(user.email, user.intro, config),
        )

    return handler
