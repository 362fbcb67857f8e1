"""
Periodic background jobs.

Registered jobs:
1. sweep_expired_codes - purges stale verification codes on an interval

Per-message delivery jobs are armed by DeliveryScheduler, not here.

Jobs are idempotent; a failed run is logged by the scheduler's listener and
the next interval tries again.
"""

import logging

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from auth.config import AuthConfig
from auth.service import VerificationService

logger = logging.getLogger(__name__)

JOB_ID_SWEEP_CODES = "verification_sweep_expired_codes"


def register_jobs(
    scheduler: BaseScheduler,
    verification_service: VerificationService,
    auth_config: AuthConfig,
) -> None:
    """
    Register periodic jobs. Call during startup, before or after start().
    """
    interval = auth_config.code_sweep_interval_minutes

    scheduler.add_job(
        verification_service.sweep_expired_codes,
        trigger=IntervalTrigger(minutes=interval),
        id=JOB_ID_SWEEP_CODES,
        name="Sweep expired verification codes",
        replace_existing=True,
    )
    logger.info(f"Registered job: {JOB_ID_SWEEP_CODES} (interval: {interval} minutes)")
