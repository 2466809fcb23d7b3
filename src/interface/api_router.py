"""REST interface over the task orchestration operations."""

import logging
from datetime import date

from fastapi import APIRouter, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.db_client import DatabaseError
from src.core.errors import (
    ErrorCode,
    TaskCoreError,
    ValidationError,
    classify_error_with_response,
    http_status_for,
)
from src.domain.assignment import Assignment, AssignmentStatus
from src.domain.create_models import AssignmentCreate, BulkAssignmentCreate, SubtaskCreate, TemplateCreate
from src.domain.template import TaskCategory, TaskTemplate
from src.domain.update_models import TemplateUpdate, VerificationRequest
from src.models.service_models import CompletionStats, OverdueAssignment, WorkerPerformance
from src.modules.tasks import analytics, templates, tracker, verification
from src.modules.tasks import service as assignment_service


logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


# Templates


@router.post("/templates", status_code=status.HTTP_201_CREATED)
async def create_template(payload: TemplateCreate) -> TaskTemplate:
    """Create a task template."""
    return await templates.create_template(**payload.model_dump())


@router.get("/templates")
async def list_templates(category: TaskCategory | None = None) -> list[TaskTemplate]:
    """List templates, optionally filtered by category."""
    return await templates.list_templates(category=category)


@router.get("/templates/{template_id}")
async def get_template(template_id: str) -> TaskTemplate:
    """Get one template."""
    return await templates.get_template(template_id=template_id)


@router.patch("/templates/{template_id}")
async def update_template(template_id: str, payload: TemplateUpdate) -> TaskTemplate:
    """Partially update a template; a `subtasks` list replaces the checklist."""
    return await templates.update_template(template_id=template_id, fields=payload)


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(template_id: str) -> None:
    """Delete a template no assignment references."""
    await templates.delete_template(template_id=template_id)


@router.post("/templates/{template_id}/subtasks", status_code=status.HTTP_201_CREATED)
async def add_subtask(template_id: str, payload: SubtaskCreate) -> TaskTemplate:
    """Append a subtask to a template's checklist."""
    return await templates.add_subtask(
        template_id=template_id,
        title=payload.title,
        description=payload.description,
        required=payload.required,
    )


@router.delete("/templates/{template_id}/subtasks/{subtask_id}")
async def remove_subtask(template_id: str, subtask_id: str) -> TaskTemplate:
    """Remove a subtask from a template's checklist."""
    return await templates.remove_subtask(template_id=template_id, subtask_id=subtask_id)


# Assignments


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment(payload: AssignmentCreate) -> Assignment:
    """Assign a template to a worker."""
    return await assignment_service.create_assignment(**payload.model_dump())


@router.post("/assignments/bulk", status_code=status.HTTP_201_CREATED)
async def create_bulk_assignments(payload: BulkAssignmentCreate) -> list[Assignment]:
    """Assign a template to several workers at once."""
    return await assignment_service.assign_to_workers(**payload.model_dump())


@router.get("/assignments")
async def list_assignments(
    worker: str | None = None,
    on_date: date | None = Query(default=None, alias="date"),
    status_filter: AssignmentStatus | None = Query(default=None, alias="status"),
) -> list[Assignment]:
    """List assignments filtered by worker, date in range, and live status."""
    return await assignment_service.list_assignments(worker_id=worker, on_date=on_date, status=status_filter)


@router.get("/assignments/overdue")
async def list_overdue_assignments() -> list[OverdueAssignment]:
    """List assignments that are overdue today."""
    return await analytics.get_overdue_assignments()


@router.get("/assignments/{assignment_id}")
async def get_assignment(assignment_id: str) -> Assignment:
    """Get one assignment with its live status."""
    return await assignment_service.get_assignment(assignment_id=assignment_id)


@router.post("/assignments/{assignment_id}/subtasks/{subtask_id}/toggle")
async def toggle_subtask(assignment_id: str, subtask_id: str) -> Assignment:
    """Tick or untick a subtask."""
    return await tracker.toggle_subtask(assignment_id=assignment_id, subtask_id=subtask_id)


@router.post("/assignments/{assignment_id}/verify")
async def verify_assignment(assignment_id: str, payload: VerificationRequest) -> Assignment:
    """Sign off a completed assignment."""
    return await verification.verify(assignment_id=assignment_id, verifier_id=payload.verifier_id)


# Performance


@router.get("/workers/stats")
async def all_worker_stats() -> list[WorkerPerformance]:
    """Performance table for every worker."""
    return await analytics.all_worker_stats()


@router.get("/workers/{worker_id}/stats")
async def worker_stats(worker_id: str) -> CompletionStats:
    """Completion statistics for one worker."""
    return await analytics.worker_stats(worker_id=worker_id)


@router.get("/stats")
async def global_stats() -> CompletionStats:
    """Completion statistics for the whole farm."""
    return await analytics.global_stats()


# Error mapping


def _error_response(exc: Exception) -> JSONResponse:
    error = classify_error_with_response(exc)
    return JSONResponse(content=error.model_dump(mode="json"), status_code=http_status_for(exc))


async def handle_task_error(request: Request, exc: Exception) -> JSONResponse:
    """Map task errors to 400/404/409 with a structured body."""
    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "code": getattr(exc, "code", None), "error": str(exc)},
    )
    return _error_response(exc)


async def handle_request_validation_error(request: Request, exc: Exception) -> JSONResponse:
    """Report malformed request bodies and query parameters as validation errors (400)."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    parts = []
    for error in errors:
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    validation_error = ValidationError("; ".join(parts) or "Invalid request", code=ErrorCode.ERR_VALIDATION)
    logger.info("Request validation failed", extra={"path": request.url.path, "error": validation_error.message})
    return _error_response(validation_error)


async def handle_database_error(request: Request, exc: Exception) -> JSONResponse:
    """Report storage failures as 500 without leaking details."""
    logger.error("Storage failure", extra={"path": request.url.path, "error": str(exc)})
    return _error_response(exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error mapping on an application."""
    app.add_exception_handler(TaskCoreError, handle_task_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(DatabaseError, handle_database_error)
