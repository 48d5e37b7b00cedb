"""
Background Job Scheduler

Provides scheduled task execution using APScheduler with AsyncIO support.
Handles scheduler startup, owned interval jobs, and graceful shutdown.

Design Principles:
- Every periodic callback is a named job that its owner adds and removes
- Only one instance of a job runs at a time; missed runs are coalesced
- Failed jobs are logged but don't crash the scheduler
- Scheduler integrates with FastAPI lifespan

Usage:
    from app.core.scheduler import start_scheduler, stop_scheduler

    # In FastAPI lifespan:
    async def lifespan(app):
        await start_scheduler()
        yield
        await stop_scheduler()

    # Owned interval job:
    add_interval_job(scheduler, "display:abc:heartbeat", tick, seconds=5)
    ...
    remove_job(scheduler, "display:abc:heartbeat")
"""

import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

# Global scheduler instance
_scheduler: AsyncIOScheduler | None = None


class SchedulerConfig:
    """Configuration for the background scheduler."""

    TIMEZONE = "UTC"

    JOB_COALESCE = True  # Combine multiple missed executions into one
    JOB_MAX_INSTANCES = 1  # Only one instance of each job can run at a time
    JOB_MISFIRE_GRACE_TIME = 30

    EXECUTORS = {
        "default": {"type": "asyncio"},
    }

    JOB_DEFAULTS = {
        "coalesce": JOB_COALESCE,
        "max_instances": JOB_MAX_INSTANCES,
        "misfire_grace_time": JOB_MISFIRE_GRACE_TIME,
    }


def _job_listener(event: JobExecutionEvent) -> None:
    """Log job failures. Successful runs are logged at debug level (countdown jobs tick every second)."""
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.debug(f"Job {event.job_id} executed at {datetime.now(UTC).isoformat()}")


def get_scheduler() -> AsyncIOScheduler | None:
    """
    Get the global scheduler instance.

    Returns:
        The scheduler instance, or None if not initialized
    """
    return _scheduler


async def start_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the background scheduler.

    Returns:
        The started scheduler instance
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    logger.info("Initializing background job scheduler...")

    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        executors=SchedulerConfig.EXECUTORS,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
    _scheduler.start()

    logger.info("Background job scheduler started successfully")
    return _scheduler


async def stop_scheduler() -> None:
    """
    Stop the background scheduler.

    Running jobs are not awaited; display jobs are short and their owners
    discard results once torn down.
    """
    global _scheduler

    if _scheduler is None:
        logger.debug("Scheduler not initialized, nothing to stop")
        return

    if not _scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        return

    logger.info("Stopping background job scheduler...")
    _scheduler.shutdown(wait=False)
    logger.info("Background job scheduler stopped")
    _scheduler = None


def add_interval_job(
    scheduler: AsyncIOScheduler,
    job_id: str,
    func: Callable[[], Coroutine[Any, Any, None]],
    *,
    seconds: int,
) -> None:
    """
    Add an interval job owned by the caller.

    The caller is responsible for removing the job with remove_job when
    it is torn down.

    Args:
        scheduler: Running scheduler
        job_id: Unique identifier for the job
        func: Async function to execute on every tick
        seconds: Interval between ticks
    """
    scheduler.add_job(
        func,
        trigger=IntervalTrigger(seconds=seconds),
        id=job_id,
        replace_existing=True,
    )
    logger.debug(f"Added interval job {job_id} every {seconds}s")


def remove_job(scheduler: AsyncIOScheduler, job_id: str) -> bool:
    """
    Remove a job if it is still scheduled.

    Returns:
        True if the job was removed, False if it was not found
    """
    try:
        scheduler.remove_job(job_id)
    except JobLookupError:
        logger.debug(f"Job not found for removal: {job_id}")
        return False

    logger.debug(f"Removed job {job_id}")
    return True


def list_scheduled_jobs(prefix: str | None = None) -> list[dict[str, Any]]:
    """
    List scheduled jobs and their next run time.

    Args:
        prefix: Only include jobs whose id starts with this prefix
    """
    if _scheduler is None:
        return []

    jobs = []
    for job in _scheduler.get_jobs():
        if prefix and not job.id.startswith(prefix):
            continue
        jobs.append(
            {
                "job_id": job.id,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
        )
    return jobs
