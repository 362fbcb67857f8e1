"""
Delivery scheduler: one timed "new letter" notification per message.

Each undelivered message gets a DateTrigger job keyed by its id. Jobs are
in-memory only, so reschedule_all() rebuilds them from the store at startup;
messages whose deliver_at already passed fire immediately. A message is
notified at most once: notified_at is stamped after a successful send and
every job checks it before sending.
"""

import logging
import secrets
import threading
from typing import Any

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from core import templates
from core.config import PenpalsConfig
from core.models import Message
from core.notifier import Notifier
from core.scheduler import next_run_at
from core.store import DocumentStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class DeliveryScheduler:
    """Arms, fires, and lists delivery notification jobs."""

    JOB_ID_PREFIX = "message_delivery:"

    def __init__(
        self,
        config: PenpalsConfig,
        store: DocumentStore,
        notifier: Notifier,
        scheduler: BaseScheduler,
    ):
        self.config = config
        self.store = store
        self.notifier = notifier
        self.scheduler = scheduler
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()

    @classmethod
    def job_id(cls, message_id: str) -> str:
        return f"{cls.JOB_ID_PREFIX}{message_id}"

    def schedule_one(self, message: Message) -> bool:
        """
        Arm the notification job for a message.

        Re-arming the same message replaces its job rather than adding a
        second one. Overdue messages are armed for now.

        Returns:
            True if a job was armed, False if the message was already notified
        """
        if message.notified_at is not None:
            return False

        self._arm(message, self.job_id(message.id))
        return True

    def _arm(self, message: Message, job_id: str) -> None:
        run_at = max(message.deliver_at, now_utc())
        self.scheduler.add_job(
            self.deliver,
            trigger=DateTrigger(run_date=run_at),
            args=[message.id],
            id=job_id,
            name=f"Deliver {message.id} to {message.recipient}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug(f"Delivery of {message.id} armed for {run_at.isoformat()} ({job_id})")

    def reschedule_all(self) -> int:
        """
        Re-arm every message that has not been notified yet.

        Called once at startup, after the scheduler is created.

        Returns:
            Number of jobs armed
        """
        db = self.store.snapshot()
        now = now_utc()
        pending = [m for m in db.messages if m.notified_at is None]
        overdue = sum(1 for m in pending if m.deliver_at <= now)

        for message in pending:
            self.schedule_one(message)

        logger.info(
            f"Rescheduled {len(pending)} delivery notifications ({overdue} overdue, firing now)"
        )
        return len(pending)

    def deliver(self, message_id: str) -> bool:
        """
        Job body: notify the recipient that a letter arrived.

        Safe to call repeatedly; concurrent calls for the same id collapse
        into one send.

        Returns:
            True if a notification was sent by this call
        """
        with self._in_flight_lock:
            if message_id in self._in_flight:
                logger.debug(f"Delivery of {message_id} already in flight")
                return False
            self._in_flight.add(message_id)

        try:
            return self._deliver(message_id)
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(message_id)

    def _deliver(self, message_id: str) -> bool:
        found = self.store.snapshot().find_message(message_id)
        if found is None:
            logger.warning(f"Delivery job for unknown message {message_id}")
            return False

        _, message = found
        if message.notified_at is not None:
            logger.debug(f"Message {message_id} already notified")
            return False

        now = now_utc()
        if now < message.deliver_at:
            # Fired early (clock adjustment). The finished job is removed by the
            # scheduler thread after it is handed off, so re-arm under a new id.
            self._arm(message, f"{self.job_id(message.id)}:retry-{secrets.token_hex(4)}")
            return False

        if not self.notifier.send(message.recipient, templates.message_delivered(self.config)):
            logger.warning(
                f"Delivery notification for {message_id} failed; retried on next startup"
            )
            return False

        with self.store.transaction() as db:
            found = db.find_message(message_id)
            if found is not None:
                index, current = found
                if current.notified_at is None:
                    db.messages[index] = current.model_copy(update={"notified_at": now})

        logger.info(f"Delivery notification sent to {message.recipient} for {message_id}")
        return True

    def pending_deliveries(self) -> list[dict[str, Any]]:
        """Armed delivery jobs, soonest first."""
        jobs = [
            job for job in self.scheduler.get_jobs()
            if job.id.startswith(self.JOB_ID_PREFIX)
        ]
        jobs.sort(key=lambda job: (next_run_at(job) is None, next_run_at(job) or now_utc()))
        deliveries = []
        for job in jobs:
            run_at = next_run_at(job)
            deliveries.append({
                "message_id": job.args[0],
                "job_id": job.id,
                "run_at": run_at.isoformat() if run_at else None,
            })
        return deliveries
