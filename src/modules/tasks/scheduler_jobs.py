"""Scheduled jobs for the tasks module.

The daily overdue sweep persists the overdue overlay so the stored status column
agrees with what readers compute live. Reads never depend on it having run.
"""

import logging
from collections import Counter

from src.core import clock
from src.core.config import settings
from src.core.module import ScheduledJob
from src.core.scheduler_tracker import retry_job_with_backoff
from src.domain.assignment import AssignmentStatus
from src.models.service_models import OverdueSweepResult
from src.modules.tasks import service as assignment_service


logger = logging.getLogger(__name__)


async def sweep_overdue_assignments() -> OverdueSweepResult:
    """Re-derive and persist every open assignment's status for today.

    Returns:
        Counts of assignments checked, rewritten, and overdue after the sweep
    """
    logger.info("Running overdue sweep for %s", clock.today())

    stored = await assignment_service.list_stored_assignments(
        filter_query=f'status != "{AssignmentStatus.COMPLETED}"'
    )
    updated = 0
    for assignment in stored:
        if await assignment_service.sync_assignment(assignment_id=assignment.id):
            updated += 1

    overdue = await assignment_service.live_assignments(filter_query=f'status = "{AssignmentStatus.OVERDUE}"')
    by_worker = Counter(assignment.worker_name for assignment in overdue)
    for worker_name, count in sorted(by_worker.items()):
        logger.info("%s has %d overdue assignment(s)", worker_name, count)

    result = OverdueSweepResult(checked=len(stored), updated=updated, overdue=len(overdue))
    logger.info(
        "Completed overdue sweep: %d checked, %d updated, %d overdue",
        result.checked,
        result.updated,
        result.overdue,
    )
    return result


async def run_overdue_sweep() -> None:
    """Scheduler entry point for the overdue sweep, with retries."""
    await retry_job_with_backoff(sweep_overdue_assignments, "overdue_sweep")


def get_scheduled_jobs() -> list[ScheduledJob]:
    """Return scheduled jobs for tasks module."""
    return [
        ScheduledJob(
            id="overdue_sweep",
            name="Persist Overdue Assignment Statuses",
            cron=f"0 {settings.overdue_sweep_hour} * * *",
            func=run_overdue_sweep,
        ),
    ]
