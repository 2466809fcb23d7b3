"""Pydantic models for validating input before records are created."""

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from src.domain.template import TaskCategory, TaskPriority


def require_text(value: str, field_name: str) -> str:
    """Strip a required string, rejecting blank values."""
    value = value.strip()
    if not value:
        msg = f"{field_name} must not be empty"
        raise ValueError(msg)
    return value


def require_positive_duration(value: float) -> float:
    """Reject zero or negative durations."""
    if value <= 0:
        msg = "Estimated duration must be greater than 0 hours"
        raise ValueError(msg)
    return value


def require_unique_subtask_ids(subtasks: list["SubtaskCreate"]) -> list["SubtaskCreate"]:
    """Reject checklists where two entries carry the same explicit ID."""
    ids = [subtask.id for subtask in subtasks if subtask.id]
    if len(ids) != len(set(ids)):
        msg = "Subtask IDs must be unique within a template"
        raise ValueError(msg)
    return subtasks


class SubtaskCreate(BaseModel):
    """Input for a subtask; `id` is generated when omitted."""

    id: str | None = Field(default=None, description="Existing subtask ID to keep, if any")
    title: str = Field(..., description="Subtask title")
    description: str = Field(default="", description="Detailed instructions")
    required: bool = Field(default=True, description="Whether the item is mandatory")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate title is not blank."""
        return require_text(v, "Subtask title")


class TemplateCreate(BaseModel):
    """Pydantic model for creating a task template record."""

    title: str = Field(..., description="Template title")
    description: str = Field(..., description="What the task involves")
    category: TaskCategory = Field(default=TaskCategory.DAILY, description="Recurrence category")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority level")
    estimated_duration_hours: float = Field(..., description="Estimated effort in hours")
    subtasks: list[SubtaskCreate] = Field(default_factory=list, description="Ordered subtask checklist")
    assigned_workers: list[str] = Field(default_factory=list, description="Typically responsible worker IDs")
    created_by: str = Field(default="system", description="Supervisor creating the template")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate title is not blank."""
        return require_text(v, "Title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        """Validate description is not blank."""
        return require_text(v, "Description")

    @field_validator("estimated_duration_hours")
    @classmethod
    def validate_duration(cls, v: float) -> float:
        """Validate estimated duration is positive."""
        return require_positive_duration(v)

    @field_validator("subtasks")
    @classmethod
    def validate_unique_subtask_ids(cls, v: list[SubtaskCreate]) -> list[SubtaskCreate]:
        """Validate explicitly supplied subtask IDs are unique."""
        return require_unique_subtask_ids(v)


class AssignmentCreate(BaseModel):
    """Pydantic model for creating an assignment record."""

    template_id: str = Field(..., description="Template to assign")
    worker_id: str = Field(..., description="Worker to assign it to")
    assigned_date: date = Field(..., description="Date the work is assigned for")
    due_date: date = Field(..., description="Date the work is due")
    notes: str = Field(default="", description="Free-text notes")

    @model_validator(mode="after")
    def validate_date_range(self) -> "AssignmentCreate":
        """Validate due date is not before the assigned date (past dates are allowed)."""
        if self.due_date < self.assigned_date:
            msg = f"Due date {self.due_date} is before assigned date {self.assigned_date}"
            raise ValueError(msg)
        return self


class BulkAssignmentCreate(BaseModel):
    """Pydantic model for assigning one template to several workers at once."""

    template_id: str = Field(..., description="Template to assign")
    worker_ids: list[str] = Field(..., description="Workers to assign it to")
    assigned_date: date = Field(..., description="Date the work is assigned for")
    due_date: date = Field(..., description="Date the work is due")
    notes: str = Field(default="", description="Free-text notes")

    @field_validator("worker_ids")
    @classmethod
    def validate_worker_ids(cls, v: list[str]) -> list[str]:
        """Drop blanks and repeats, keeping the given order; at least one worker is required."""
        ids = list(dict.fromkeys(worker_id.strip() for worker_id in v if worker_id.strip()))
        if not ids:
            msg = "At least one worker must be selected"
            raise ValueError(msg)
        return ids

    @model_validator(mode="after")
    def validate_date_range(self) -> "BulkAssignmentCreate":
        """Validate due date is not before the assigned date."""
        if self.due_date < self.assigned_date:
            msg = f"Due date {self.due_date} is before assigned date {self.assigned_date}"
            raise ValueError(msg)
        return self
