"""Domain models and DTOs."""

from src.domain.assignment import Assignment, AssignmentStatus
from src.domain.create_models import AssignmentCreate, BulkAssignmentCreate, SubtaskCreate, TemplateCreate
from src.domain.template import Subtask, TaskCategory, TaskPriority, TaskTemplate
from src.domain.update_models import TemplateUpdate, VerificationRequest
from src.domain.worker import Worker


__all__ = [
    "Assignment",
    "AssignmentCreate",
    "BulkAssignmentCreate",
    "AssignmentStatus",
    "Subtask",
    "SubtaskCreate",
    "TaskCategory",
    "TaskPriority",
    "TaskTemplate",
    "TemplateCreate",
    "TemplateUpdate",
    "VerificationRequest",
    "Worker",
]
