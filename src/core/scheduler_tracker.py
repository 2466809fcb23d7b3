"""Run tracking and retries for scheduled jobs."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from pydantic import BaseModel


logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 500


class JobStatus(BaseModel):
    """Execution history of one scheduled job since process start."""

    job_name: str
    last_success: datetime | None = None
    last_failure: datetime | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    success_count: int = 0
    failure_count: int = 0
    current_run_started: datetime | None = None

    @property
    def currently_running(self) -> bool:
        return self.current_run_started is not None


class JobTracker:
    """Track job runs in process memory for the health endpoint."""

    def __init__(self) -> None:
        self._jobs: dict[str, JobStatus] = {}

    def _status(self, job_name: str) -> JobStatus:
        return self._jobs.setdefault(job_name, JobStatus(job_name=job_name))

    def record_job_start(self, job_name: str) -> None:
        """Record job execution start."""
        self._status(job_name).current_run_started = datetime.now(UTC)

    def record_job_success(self, job_name: str) -> None:
        """Record successful job execution and reset the failure streak."""
        status = self._status(job_name)
        status.last_success = datetime.now(UTC)
        status.consecutive_failures = 0
        status.success_count += 1
        status.current_run_started = None

    def record_job_failure(self, job_name: str, error: str) -> int:
        """Record failed job execution.

        Returns:
            Number of consecutive failures including this one
        """
        status = self._status(job_name)
        status.last_failure = datetime.now(UTC)
        status.last_error = error[:MAX_ERROR_LENGTH]
        status.consecutive_failures += 1
        status.failure_count += 1
        status.current_run_started = None
        return status.consecutive_failures

    def get_job_status(self, job_name: str) -> JobStatus:
        """Get execution status for a job (empty history if it never ran)."""
        return self._jobs.get(job_name, JobStatus(job_name=job_name))

    def all_statuses(self) -> list[JobStatus]:
        """Get execution status for every job that has run."""
        return [self._jobs[name] for name in sorted(self._jobs)]

    def reset(self) -> None:
        """Forget all job history."""
        self._jobs.clear()


# Global job tracker instance
job_tracker = JobTracker()


async def retry_job_with_backoff(
    job_func: Callable[[], Awaitable[object]],
    job_name: str,
    max_retries: int = 3,
    base_delay: float = 2.0,
) -> None:
    """Execute job with retry logic and exponential backoff.

    Scheduled jobs never raise into the scheduler; exhausted retries are logged
    and recorded on the tracker.

    Args:
        job_func: Async function to execute
        job_name: Name of the job for tracking
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds for exponential backoff
    """
    job_tracker.record_job_start(job_name)

    last_error = None
    for attempt in range(max_retries):
        try:
            logger.info("Executing %s (attempt %d/%d)", job_name, attempt + 1, max_retries)
            await job_func()

            job_tracker.record_job_success(job_name)
            logger.info("%s completed successfully", job_name)
            return

        except Exception as e:
            last_error = str(e)
            logger.error("%s failed on attempt %d/%d: %s", job_name, attempt + 1, max_retries, last_error)

            if attempt < max_retries - 1:
                delay = base_delay**attempt
                logger.info("Retrying %s in %.0fs", job_name, delay)
                await asyncio.sleep(delay)

    error_msg = f"Failed after {max_retries} attempts: {last_error}"
    consecutive_failures = job_tracker.record_job_failure(job_name, error_msg)
    logger.error(
        "%s failed after all retry attempts",
        job_name,
        extra={"error": error_msg, "consecutive_failures": consecutive_failures},
    )
