"""Assignment domain models and enums."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field

from src.domain.template import TaskCategory


class AssignmentStatus(StrEnum):
    """Assignment lifecycle status.

    OVERDUE is a time-derived overlay on PENDING and IN_PROGRESS, never on COMPLETED.
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class Assignment(BaseModel):
    """One template bound to one worker for a date range.

    `template_title`, `template_category` and `worker_name` are snapshots taken at
    creation time. They intentionally do not follow later template or worker renames.
    """

    id: str = Field(..., description="Unique assignment ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    template_id: str = Field(..., description="Referenced template ID")
    template_title: str = Field(..., description="Template title at assignment time (snapshot)")
    template_category: TaskCategory = Field(..., description="Template category at assignment time (snapshot)")
    worker_id: str = Field(..., description="Assignee worker ID")
    worker_name: str = Field(..., description="Worker name at assignment time (snapshot)")
    assigned_date: date = Field(..., description="Date the work was assigned for")
    due_date: date = Field(..., description="Date the work is due")
    started_date: date | None = Field(default=None, description="Date the first subtask was ticked")
    completed_date: date | None = Field(default=None, description="Date every subtask was ticked")
    completed_subtask_ids: list[str] = Field(default_factory=list, description="Ticked subtask IDs")
    completion_percentage: float = Field(default=0.0, ge=0, le=100, description="Share of subtasks ticked")
    status: AssignmentStatus = Field(default=AssignmentStatus.PENDING, description="Lifecycle status")
    notes: str = Field(default="", description="Free-text notes from the supervisor")
    verified_by: str | None = Field(default=None, description="Supervisor who signed off the work")
    verified_date: date | None = Field(default=None, description="Date of the latest sign-off")

    @property
    def is_verified(self) -> bool:
        """Whether a supervisor has signed off this assignment."""
        return self.verified_by is not None
