"""Update models for database operations."""

from pydantic import BaseModel, field_validator

from src.domain.create_models import (
    SubtaskCreate,
    require_positive_duration,
    require_text,
    require_unique_subtask_ids,
)
from src.domain.template import TaskCategory, TaskPriority


class TemplateUpdate(BaseModel):
    """Partial update payload for a task template.

    When `subtasks` is given it replaces the whole checklist. Entries carrying an
    existing `id` keep it, so progress recorded against them survives the edit.
    """

    title: str | None = None
    description: str | None = None
    category: TaskCategory | None = None
    priority: TaskPriority | None = None
    estimated_duration_hours: float | None = None
    subtasks: list[SubtaskCreate] | None = None
    assigned_workers: list[str] | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Validate title is not blank when provided."""
        return None if v is None else require_text(v, "Title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        """Validate description is not blank when provided."""
        return None if v is None else require_text(v, "Description")

    @field_validator("estimated_duration_hours")
    @classmethod
    def validate_duration(cls, v: float | None) -> float | None:
        """Validate estimated duration is positive when provided."""
        return None if v is None else require_positive_duration(v)

    @field_validator("subtasks")
    @classmethod
    def validate_unique_subtask_ids(cls, v: list[SubtaskCreate] | None) -> list[SubtaskCreate] | None:
        """Validate explicitly supplied subtask IDs are unique when provided."""
        return None if v is None else require_unique_subtask_ids(v)


class VerificationRequest(BaseModel):
    """Payload for signing off a completed assignment."""

    verifier_id: str
