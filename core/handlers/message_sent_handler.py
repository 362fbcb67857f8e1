"""Handler for MessageSent events: arms the delivery notification job."""

from typing import Callable

from core.events import MessageSent
from core.services.delivery_scheduler import DeliveryScheduler


def handle_message_sent(delivery_scheduler: DeliveryScheduler) -> Callable:
    """Factory that returns a MessageSent handler."""

    def handler(event: MessageSent):
        delivery_scheduler.schedule_one(event.message)

    return handler
