"""Supervisor sign-off of completed assignments."""

import logging

from src.core import clock, db_client
from src.core.errors import ConflictError, ErrorCode, ValidationError
from src.core.locks import assignment_locks
from src.core.logging import span
from src.domain.assignment import Assignment, AssignmentStatus
from src.modules.tasks import service as assignment_service
from src.modules.tasks import state_machine, templates


logger = logging.getLogger(__name__)


async def verify(*, assignment_id: str, verifier_id: str) -> Assignment:
    """Record a supervisor's sign-off on a completed assignment.

    Re-verifying overwrites the previous verifier. The completion check and the
    write happen under the assignment's lock, so a concurrent untick cannot slip
    between them.

    Args:
        assignment_id: Assignment ID
        verifier_id: Supervisor signing off

    Returns:
        The verified assignment

    Raises:
        ValidationError: If verifier_id is blank
        NotFoundError: If the assignment does not exist
        ConflictError: If the assignment is not completed
    """
    verifier_id = verifier_id.strip()
    if not verifier_id:
        raise ValidationError("verifier_id must not be empty")

    with span("verification_service.verify"):
        async with assignment_locks.hold(assignment_id):
            assignment = await assignment_service.load_assignment(assignment_id=assignment_id)
            template = await templates.get_template(template_id=assignment.template_id)
            today = clock.today()

            status = state_machine.derive_status(assignment, template, today)
            if status != AssignmentStatus.COMPLETED:
                logger.warning(
                    "Verification rejected",
                    extra={"assignment_id": assignment_id, "verifier_id": verifier_id, "status": status},
                )
                raise ConflictError(
                    f"Assignment {assignment_id} is {status}; only completed work can be verified",
                    code=ErrorCode.ERR_NOT_COMPLETED,
                )

            record = await db_client.update_record(
                collection=assignment_service.COLLECTION,
                record_id=assignment_id,
                data={"verified_by": verifier_id, "verified_date": today.isoformat()},
            )

        if assignment.verified_by and assignment.verified_by != verifier_id:
            logger.info("Assignment %s re-verified by %s (was %s)", assignment_id, verifier_id, assignment.verified_by)
        else:
            logger.info("Assignment %s verified by %s", assignment_id, verifier_id)

        return assignment_service.live_view(Assignment.model_validate(record), template, today)
