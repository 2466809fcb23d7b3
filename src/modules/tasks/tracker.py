"""Subtask completion tracking for assignments."""

import logging

from src.core import clock, db_client
from src.core.errors import ErrorCode, NotFoundError
from src.core.locks import assignment_locks
from src.core.logging import span
from src.domain.assignment import Assignment
from src.modules.tasks import service as assignment_service
from src.modules.tasks import state_machine, templates


logger = logging.getLogger(__name__)


async def toggle_subtask(*, assignment_id: str, subtask_id: str) -> Assignment:
    """Tick or untick one subtask of an assignment and re-derive its status.

    The subtask must exist on the live template. Progress, status, and the
    started/completed dates are written together in a single update. Toggling a
    completed assignment is allowed and reopens it.

    Args:
        assignment_id: Assignment ID
        subtask_id: Subtask ID on the assignment's template

    Returns:
        Updated assignment

    Raises:
        NotFoundError: If the assignment, its template, or the subtask does not exist
    """
    with span("tracker.toggle_subtask"):
        async with assignment_locks.hold(assignment_id):
            assignment = await assignment_service.load_assignment(assignment_id=assignment_id)
            template = await templates.get_template(template_id=assignment.template_id)

            if template.get_subtask(subtask_id) is None:
                raise NotFoundError(
                    f"Subtask {subtask_id} not found on template {template.id}",
                    code=ErrorCode.ERR_SUBTASK_NOT_FOUND,
                )

            completed_ids = state_machine.toggled_ids(assignment.completed_subtask_ids, subtask_id)
            toggled = assignment.model_copy(update={"completed_subtask_ids": completed_ids})
            fields = state_machine.derive_fields(toggled, template, clock.today())

            record = await db_client.update_record(
                collection=assignment_service.COLLECTION,
                record_id=assignment_id,
                data=fields,
            )
            updated = Assignment.model_validate(record)

        logger.info(
            "Toggled subtask %s on assignment %s: %.0f%% (%s)",
            subtask_id,
            assignment_id,
            updated.completion_percentage,
            updated.status,
        )
        return updated
