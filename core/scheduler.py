"""
Background job scheduler.

Provides scheduled task execution using APScheduler's BackgroundScheduler.
One scheduler instance is created per application and handed to the
services that arm jobs; nothing here is a module-level singleton.

Design Principles:
- Jobs are idempotent (safe to run multiple times)
- Failed jobs are logged but don't crash the scheduler
- Jobs only live in memory; anything that must survive a restart is
  re-derived from persisted state at startup
- Late jobs always run, however late (misfire_grace_time=None)

Usage:
    scheduler = create_scheduler()
    register_jobs(scheduler, ...)
    scheduler.start()
    ...
    stop_scheduler(scheduler)
"""

import logging
from datetime import datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.job import Job
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SchedulerConfig:
    """Configuration for the background scheduler."""

    TIMEZONE = "UTC"

    JOB_DEFAULTS = {
        "coalesce": True,  # Combine multiple missed executions into one
        "max_instances": 1,  # Only one instance of each job can run at a time
        "misfire_grace_time": None,  # Run late jobs no matter how late
    }


def _job_listener(event: JobExecutionEvent) -> None:
    """Log job execution results for monitoring and debugging."""
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.debug(f"Job {event.job_id} executed successfully at {now_utc().isoformat()}")


def create_scheduler() -> BackgroundScheduler:
    """
    Build a configured, not-yet-started scheduler.

    Jobs may be added before start(); they are armed once it runs.
    """
    scheduler = BackgroundScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )
    scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
    return scheduler


def stop_scheduler(scheduler: BaseScheduler) -> None:
    """
    Stop the scheduler gracefully, waiting for running jobs.

    Pending jobs are discarded; they are rebuilt from the store on next boot.
    """
    if not scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        return

    logger.info("Stopping background job scheduler...")
    scheduler.shutdown(wait=True)
    logger.info("Background job scheduler stopped")


def next_run_at(job: Job) -> datetime | None:
    """Next fire time; None while the scheduler has not started or the job is paused."""
    return getattr(job, "next_run_time", None)


def list_jobs(scheduler: BaseScheduler, prefix: str = "") -> list[dict[str, Any]]:
    """
    Describe scheduled jobs, optionally only those whose id starts with prefix.

    Returns:
        List of dicts with job_id, name, and next_run_time (ISO string or None)
    """
    return [
        {
            "job_id": job.id,
            "name": job.name,
            "next_run_time": _iso(next_run_at(job)),
        }
        for job in scheduler.get_jobs()
        if job.id.startswith(prefix)
    ]


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
