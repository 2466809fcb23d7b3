"""Assignment engine: binds templates to workers and serves live assignment views."""

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.core import clock, db_client
from src.core.db_client import sanitize_param
from src.core.errors import ErrorCode, NotFoundError, ValidationError
from src.core.locks import assignment_locks, template_locks
from src.core.logging import span
from src.domain.assignment import Assignment, AssignmentStatus
from src.domain.create_models import AssignmentCreate, BulkAssignmentCreate
from src.domain.template import TaskTemplate
from src.domain.worker import Worker
from src.modules.tasks import state_machine, templates
from src.services import worker_service


logger = logging.getLogger(__name__)

COLLECTION = "assignments"


async def create_assignment(
    *,
    template_id: str,
    worker_id: str,
    assigned_date: date | str,
    due_date: date | str,
    notes: str = "",
) -> Assignment:
    """Assign a template to a worker for a date range.

    Past dates are allowed; an assignment whose due date has already passed is
    created as overdue.

    Args:
        template_id: Template to assign
        worker_id: Worker to assign it to
        assigned_date: Date the work is assigned for
        due_date: Date the work is due
        notes: Free-text notes

    Returns:
        Created assignment

    Raises:
        ValidationError: If due_date is before assigned_date
        NotFoundError: If the template or worker does not exist
    """
    with span("assignment_service.create_assignment"):
        try:
            payload = AssignmentCreate(
                template_id=template_id,
                worker_id=worker_id,
                assigned_date=assigned_date,
                due_date=due_date,
                notes=notes,
            )
        except PydanticValidationError as e:
            logger.warning("Rejected assignment input", extra={"template_id": template_id, "worker_id": worker_id})
            raise ValidationError.from_pydantic(e) from e

        async with template_locks.hold(payload.template_id):
            template = await templates.get_template(template_id=payload.template_id)
            worker = await worker_service.resolve_worker(worker_id=payload.worker_id)
            return await _insert_assignment(
                template=template,
                worker=worker,
                assigned_date=payload.assigned_date,
                due_date=payload.due_date,
                notes=payload.notes,
            )


async def assign_to_workers(
    *,
    template_id: str,
    worker_ids: list[str],
    assigned_date: date | str,
    due_date: date | str,
    notes: str = "",
) -> list[Assignment]:
    """Assign one template to several workers with the same date range.

    Every worker is resolved before anything is written, so an unknown worker
    leaves no partial batch behind. Repeated worker IDs are assigned once.

    Returns:
        Created assignments, in the order the workers were given

    Raises:
        ValidationError: If no workers are given or due_date is before assigned_date
        NotFoundError: If the template or any worker does not exist
    """
    with span("assignment_service.assign_to_workers"):
        try:
            payload = BulkAssignmentCreate(
                template_id=template_id,
                worker_ids=worker_ids,
                assigned_date=assigned_date,
                due_date=due_date,
                notes=notes,
            )
        except PydanticValidationError as e:
            logger.warning("Rejected bulk assignment input", extra={"template_id": template_id})
            raise ValidationError.from_pydantic(e) from e

        async with template_locks.hold(payload.template_id):
            template = await templates.get_template(template_id=payload.template_id)
            workers = [await worker_service.resolve_worker(worker_id=worker_id) for worker_id in payload.worker_ids]

            created = [
                await _insert_assignment(
                    template=template,
                    worker=worker,
                    assigned_date=payload.assigned_date,
                    due_date=payload.due_date,
                    notes=payload.notes,
                )
                for worker in workers
            ]

        logger.info("Assigned '%s' to %d workers", template.title, len(created))
        return created


async def _insert_assignment(
    *,
    template: TaskTemplate,
    worker: Worker,
    assigned_date: date,
    due_date: date,
    notes: str,
) -> Assignment:
    status = state_machine.initial_status(due_date=due_date, today=clock.today())
    record = await db_client.create_record(
        collection=COLLECTION,
        data={
            "template_id": template.id,
            "template_title": template.title,
            "template_category": template.category,
            "worker_id": worker.id,
            "worker_name": worker.name,
            "assigned_date": assigned_date.isoformat(),
            "due_date": due_date.isoformat(),
            "completed_subtask_ids": [],
            "completion_percentage": 0.0,
            "status": status,
            "notes": notes,
        },
    )
    logger.info(
        "Assigned '%s' to %s",
        template.title,
        worker.name,
        extra={"worker_id": worker.id, "assignment_id": record["id"], "due_date": due_date.isoformat()},
    )
    return Assignment.model_validate(record)


async def load_assignment(*, assignment_id: str) -> Assignment:
    """Load the stored assignment record without any live recomputation.

    Raises:
        NotFoundError: If assignment not found
    """
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=assignment_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(
            f"Assignment not found: {assignment_id}",
            code=ErrorCode.ERR_ASSIGNMENT_NOT_FOUND,
        ) from e
    return Assignment.model_validate(record)


def live_view(assignment: Assignment, template: TaskTemplate | None, today: date) -> Assignment:
    """Recompute derived fields against the live template and today's date.

    With no template (it vanished from storage) the stored progress is kept and
    only the overdue overlay is applied.
    """
    if template is None:
        status = state_machine.status_for(
            percentage=assignment.completion_percentage,
            due_date=assignment.due_date,
            today=today,
        )
        return assignment.model_copy(update={"status": status})
    return assignment.model_copy(update=state_machine.derive_fields(assignment, template, today))


async def _templates_by_id(template_ids: Iterable[str]) -> dict[str, TaskTemplate]:
    """Fetch each referenced template once."""
    found: dict[str, TaskTemplate] = {}
    for template_id in set(template_ids):
        try:
            found[template_id] = await templates.get_template(template_id=template_id)
        except NotFoundError:
            logger.warning("Assignment references missing template", extra={"template_id": template_id})
    return found


async def list_stored_assignments(*, filter_query: str = "") -> list[Assignment]:
    """Page through every stored assignment matching the filter, ordered by due date."""
    try:
        records = await db_client.list_all_records(collection=COLLECTION, filter_query=filter_query, sort="+due_date")
    except db_client.InvalidFilterError as e:
        raise ValidationError(f"Invalid assignment filter: {e}") from e
    return [Assignment.model_validate(record) for record in records]


async def live_assignments(*, filter_query: str = "") -> list[Assignment]:
    """Return live views of every assignment matching a storage filter."""
    stored = await list_stored_assignments(filter_query=filter_query)
    template_map = await _templates_by_id(assignment.template_id for assignment in stored)
    today = clock.today()
    return [live_view(assignment, template_map.get(assignment.template_id), today) for assignment in stored]


async def get_assignment(*, assignment_id: str) -> Assignment:
    """Get an assignment with progress and status recomputed for today.

    Raises:
        NotFoundError: If assignment not found
    """
    with span("assignment_service.get_assignment"):
        assignment = await load_assignment(assignment_id=assignment_id)
        template_map = await _templates_by_id([assignment.template_id])
        return live_view(assignment, template_map.get(assignment.template_id), clock.today())


async def list_assignments(
    *,
    worker_id: str | None = None,
    on_date: date | str | None = None,
    status: AssignmentStatus | str | None = None,
) -> list[Assignment]:
    """List assignments with optional filters, ordered by due date.

    Args:
        worker_id: Only this worker's assignments
        on_date: Only assignments whose assigned..due range contains this date
        status: Only assignments with this live status (overdue overlay applied)

    Returns:
        Live assignment views

    Raises:
        ValidationError: If status or on_date is malformed
    """
    with span("assignment_service.list_assignments"):
        filters = []
        if worker_id:
            filters.append(f'worker_id = "{sanitize_param(worker_id)}"')
        if on_date is not None:
            try:
                day = on_date if isinstance(on_date, date) else date.fromisoformat(on_date)
            except ValueError as e:
                raise ValidationError(f"Invalid date: {on_date}") from e
            filters.append(f'assigned_date <= "{day.isoformat()}"')
            filters.append(f'due_date >= "{day.isoformat()}"')
        if status is not None:
            try:
                status = AssignmentStatus(status)
            except ValueError as e:
                raise ValidationError(f"Unknown status: {status}") from e

        filter_query = " && ".join(filters)
        assignments = await live_assignments(filter_query=filter_query)
        if status is not None:
            assignments = [assignment for assignment in assignments if assignment.status == status]

        logger.debug("Listed %d assignments with filters: %s status=%s", len(assignments), filter_query, status)
        return assignments


async def sync_assignment(*, assignment_id: str) -> bool:
    """Persist the derived fields of one assignment if they drifted.

    Runs under the assignment's lock so it never interleaves with a toggle or a
    verification of the same assignment.

    Returns:
        True if the stored record changed
    """
    async with assignment_locks.hold(assignment_id):
        assignment = await load_assignment(assignment_id=assignment_id)
        template_map = await _templates_by_id([assignment.template_id])
        template = template_map.get(assignment.template_id)
        if template is None:
            return False

        changes: dict[str, Any] = state_machine.apply_progress(assignment, template, clock.today())
        if not changes:
            return False

        await db_client.update_record(collection=COLLECTION, record_id=assignment_id, data=changes)
        logger.info("Re-derived assignment %s: %s", assignment_id, sorted(changes))
        return True


async def reconcile_template_assignments(*, template_id: str) -> int:
    """Re-derive every assignment of a template after its checklist changed.

    Returns:
        Number of assignments whose stored record changed
    """
    with span("assignment_service.reconcile_template_assignments"):
        stored = await list_stored_assignments(filter_query=f'template_id = "{sanitize_param(template_id)}"')
        updated = 0
        for assignment in stored:
            if await sync_assignment(assignment_id=assignment.id):
                updated += 1

        if updated:
            logger.info("Reconciled %d/%d assignments of template %s", updated, len(stored), template_id)
        return updated
