"""
Best-effort email notifier.

Wraps the gateway client so domain code gets a delivered/not-delivered
answer instead of an exception. Failures are logged and reported as False;
nothing downstream ever rolls back a committed state change because an
email did not go out.
"""

import logging

from clients.email_client import EmailGatewayClient, EmailGatewayError
from core.templates import EmailTemplate

logger = logging.getLogger(__name__)


class Notifier:
    """Send templated emails; never raises for gateway failures."""

    def __init__(self, email_client: EmailGatewayClient):
        self._email_client = email_client

    def send(self, to: str, template: EmailTemplate) -> bool:
        """
        Send template to recipient.

        Returns:
            True if the gateway accepted the email, False otherwise.
        """
        try:
            self._email_client.send_email(
                to=to,
                subject=template.subject,
                body=template.body,
                sender=template.sender,
            )
        except EmailGatewayError as e:
            logger.warning(f"Notification '{template.subject}' to {to} failed: {e}")
            return False

        return True
