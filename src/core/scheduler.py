"""Scheduler for module-declared background jobs."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.core.config import settings
from src.core.module_registry import get_all_scheduled_jobs


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


def register_jobs(target: AsyncIOScheduler | None = None) -> list[str]:
    """Add every job declared by registered modules to the scheduler.

    Returns:
        IDs of the registered jobs
    """
    target = target or scheduler
    job_ids = []
    for job in get_all_scheduled_jobs():
        target.add_job(
            job.func,
            trigger=CronTrigger.from_crontab(job.cron, timezone=settings.farm_timezone),
            id=job.id,
            name=job.name,
            replace_existing=True,
        )
        job_ids.append(job.id)
        logger.info("Scheduled %s job: %s (%s)", job.id, job.cron, settings.farm_timezone)
    return job_ids


def start_scheduler() -> None:
    """Start the scheduler and register all jobs.

    This should be called during FastAPI app startup.
    """
    logger.info("Starting scheduler")
    register_jobs()
    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler.

    This should be called during FastAPI app shutdown.
    """
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped")
