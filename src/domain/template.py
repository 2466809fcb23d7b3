"""Task template domain models and enums."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field


class TaskCategory(StrEnum):
    """How often a templated task recurs on the farm."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    SEASONAL = "seasonal"
    ONE_TIME = "one-time"


class TaskPriority(StrEnum):
    """Task priority level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Subtask(BaseModel):
    """A single checklist item within a task template."""

    id: str = Field(..., description="Subtask ID, unique within its template")
    title: str = Field(..., description="Subtask title (e.g., 'Check water troughs')")
    description: str = Field(default="", description="Detailed instructions")
    required: bool = Field(default=True, description="Whether the item is mandatory")


class TaskTemplate(BaseModel):
    """Reusable definition of a farm task and its subtask checklist."""

    id: str = Field(..., description="Unique template ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    title: str = Field(..., description="Template title (e.g., 'Daily Feeding')")
    description: str = Field(..., description="What the task involves")
    category: TaskCategory = Field(..., description="Recurrence category")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority level")
    estimated_duration_hours: float = Field(..., gt=0, description="Estimated effort in hours")
    subtasks: list[Subtask] = Field(default_factory=list, description="Ordered subtask checklist")
    assigned_workers: list[str] = Field(
        default_factory=list,
        description="Worker IDs typically responsible (informational only)",
    )
    created_by: str = Field(default="system", description="Supervisor who created the template")
    created_date: date = Field(..., description="Calendar date the template was created")

    @property
    def subtask_ids(self) -> list[str]:
        """IDs of the live subtasks, in display order."""
        return [subtask.id for subtask in self.subtasks]

    def get_subtask(self, subtask_id: str) -> Subtask | None:
        """Return the subtask with the given ID, or None."""
        return next((subtask for subtask in self.subtasks if subtask.id == subtask_id), None)
