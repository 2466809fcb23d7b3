"""Pure status derivation for assignment lifecycle management.

Nothing here touches storage. The same functions compute the persisted status at
write time and the live status (with the overdue overlay) at read time.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from src.domain.assignment import Assignment, AssignmentStatus
from src.domain.template import TaskTemplate


@dataclass(frozen=True)
class Progress:
    """Completion state of an assignment measured against the live template."""

    completed_subtask_ids: list[str]
    completion_percentage: float

    @property
    def is_complete(self) -> bool:
        return self.completion_percentage >= 100.0  # noqa: PLR2004


def measure_progress(*, completed_ids: Iterable[str], subtask_ids: Sequence[str]) -> Progress:
    """Intersect ticked IDs with the template's current subtasks and compute the percentage.

    Kept IDs follow template order; IDs of subtasks removed from the template are
    dropped. A template with no subtasks is always 0% complete.
    """
    ticked = set(completed_ids)
    kept = list(dict.fromkeys(subtask_id for subtask_id in subtask_ids if subtask_id in ticked))

    if not subtask_ids:
        return Progress(completed_subtask_ids=kept, completion_percentage=0.0)
    return Progress(
        completed_subtask_ids=kept,
        completion_percentage=100.0 * len(kept) / len(subtask_ids),
    )


def status_for(*, percentage: float, due_date: date, today: date) -> AssignmentStatus:
    """Map completion and due date to a status.

    Completion wins over everything; otherwise a passed due date reports OVERDUE
    regardless of progress; otherwise any progress means IN_PROGRESS.
    """
    if percentage >= 100.0:  # noqa: PLR2004
        return AssignmentStatus.COMPLETED
    if due_date < today:
        return AssignmentStatus.OVERDUE
    if percentage > 0:
        return AssignmentStatus.IN_PROGRESS
    return AssignmentStatus.PENDING


def initial_status(*, due_date: date, today: date) -> AssignmentStatus:
    """Status of a freshly created assignment; backdated ones are born overdue."""
    return status_for(percentage=0.0, due_date=due_date, today=today)


def derive_status(assignment: Assignment, template: TaskTemplate, today: date) -> AssignmentStatus:
    """Single source of truth for an assignment's status on a given day."""
    progress = measure_progress(
        completed_ids=assignment.completed_subtask_ids,
        subtask_ids=template.subtask_ids,
    )
    return status_for(percentage=progress.completion_percentage, due_date=assignment.due_date, today=today)


def toggled_ids(completed_ids: Sequence[str], subtask_id: str) -> list[str]:
    """Flip membership of `subtask_id`, preserving tick order."""
    if subtask_id in completed_ids:
        return [existing for existing in completed_ids if existing != subtask_id]
    return [*completed_ids, subtask_id]


def derive_fields(assignment: Assignment, template: TaskTemplate, today: date) -> dict[str, object]:
    """Compute every progress-derived field of an assignment against its template.

    Completion is not sticky: dropping below 100% clears `completed_date`.
    `started_date` is set the first time any subtask is ticked and then kept.
    """
    progress = measure_progress(
        completed_ids=assignment.completed_subtask_ids,
        subtask_ids=template.subtask_ids,
    )
    status = status_for(percentage=progress.completion_percentage, due_date=assignment.due_date, today=today)

    started_date = assignment.started_date
    if started_date is None and progress.completed_subtask_ids:
        started_date = today

    completed_date = assignment.completed_date
    if progress.is_complete:
        completed_date = completed_date or today
    else:
        completed_date = None

    return {
        "completed_subtask_ids": progress.completed_subtask_ids,
        "completion_percentage": progress.completion_percentage,
        "status": status,
        "started_date": started_date,
        "completed_date": completed_date,
    }


def apply_progress(assignment: Assignment, template: TaskTemplate, today: date) -> dict[str, object]:
    """Return only the derived fields whose stored value is out of date.

    An empty dict means the stored record is already consistent. All returned
    fields must be written together.
    """
    target = derive_fields(assignment, template, today)
    current = assignment.model_dump(include=set(target))
    return {key: value for key, value in target.items() if current[key] != value}
