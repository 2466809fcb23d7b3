"""Performance analytics for workers and the whole farm.

This module provides functions for:
- Per-worker and farm-wide completion statistics
- The worker performance table (every worker, ranked by completion rate)
- The list of overdue assignments needing attention

Key Concepts:
- Live status: every count uses the status recomputed for today, so an
  assignment whose due date passed since its last write counts as overdue.
- Completion rate: 100 * completed / total, and 0 when there are no assignments.
- Pending assignments are part of the total but have no counter of their own.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable

from src.core import clock
from src.core.db_client import sanitize_param
from src.core.logging import span
from src.domain.assignment import Assignment, AssignmentStatus
from src.models.service_models import CompletionStats, OverdueAssignment, WorkerPerformance
from src.modules.tasks import service as assignment_service
from src.services import worker_service


logger = logging.getLogger(__name__)


def summarize(assignments: Iterable[Assignment]) -> CompletionStats:
    """Count live statuses and compute the completion rate."""
    counts: dict[AssignmentStatus, int] = defaultdict(int)
    total = 0
    for assignment in assignments:
        counts[assignment.status] += 1
        total += 1

    completed = counts[AssignmentStatus.COMPLETED]
    return CompletionStats(
        total=total,
        completed=completed,
        in_progress=counts[AssignmentStatus.IN_PROGRESS],
        overdue=counts[AssignmentStatus.OVERDUE],
        completion_rate_percent=100.0 * completed / total if total else 0.0,
    )


async def worker_stats(*, worker_id: str) -> CompletionStats:
    """Get completion statistics for one worker.

    Raises:
        NotFoundError: If the worker is not in the directory
    """
    with span("analytics_service.worker_stats"):
        await worker_service.resolve_worker(worker_id=worker_id)
        assignments = await assignment_service.live_assignments(
            filter_query=f'worker_id = "{sanitize_param(worker_id)}"'
        )
        return summarize(assignments)


async def global_stats() -> CompletionStats:
    """Get completion statistics over every assignment on the farm."""
    with span("analytics_service.global_stats"):
        assignments = await assignment_service.live_assignments()
        stats = summarize(assignments)
        logger.debug(
            "Global stats: %d total, %d completed, %d overdue",
            stats.total,
            stats.completed,
            stats.overdue,
        )
        return stats


async def all_worker_stats() -> list[WorkerPerformance]:
    """Get the performance table: one row per worker, best completion rate first.

    Workers with no assignments are listed with zero counts.
    """
    with span("analytics_service.all_worker_stats"):
        workers = await worker_service.list_workers()
        assignments = await assignment_service.live_assignments()

        by_worker: dict[str, list[Assignment]] = defaultdict(list)
        for assignment in assignments:
            by_worker[assignment.worker_id].append(assignment)

        rows = [
            WorkerPerformance(
                worker_id=worker.id,
                worker_name=worker.name,
                role=worker.role,
                **summarize(by_worker.get(worker.id, [])).model_dump(),
            )
            for worker in workers
        ]
        rows.sort(key=lambda row: (-row.completion_rate_percent, row.worker_name))
        return rows


async def get_overdue_assignments() -> list[OverdueAssignment]:
    """Get every assignment that is overdue today, oldest due date first."""
    with span("analytics_service.get_overdue_assignments"):
        today = clock.today()
        assignments = await assignment_service.live_assignments(filter_query=f'due_date < "{today.isoformat()}"')

        overdue = [
            OverdueAssignment(
                id=assignment.id,
                template_title=assignment.template_title,
                worker_id=assignment.worker_id,
                worker_name=assignment.worker_name,
                due_date=assignment.due_date,
                days_overdue=(today - assignment.due_date).days,
                completion_percentage=assignment.completion_percentage,
            )
            for assignment in assignments
            if assignment.status == AssignmentStatus.OVERDUE
        ]
        logger.debug("Found %d overdue assignments", len(overdue))
        return overdue
