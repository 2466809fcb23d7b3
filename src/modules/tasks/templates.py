"""Task template store: reusable task definitions and their subtask checklists."""

import logging
import uuid
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.core import clock, db_client
from src.core.config import constants
from src.core.db_client import sanitize_param
from src.core.errors import ConflictError, ErrorCode, NotFoundError, ValidationError
from src.core.locks import template_locks
from src.core.logging import span
from src.domain.create_models import SubtaskCreate, TemplateCreate
from src.domain.template import Subtask, TaskCategory, TaskPriority, TaskTemplate
from src.domain.update_models import TemplateUpdate


logger = logging.getLogger(__name__)

COLLECTION = "task_templates"


def _new_subtask_id() -> str:
    return f"{constants.SUBTASK_ID_PREFIX}-{uuid.uuid4().hex[:8]}"


def _build_subtasks(items: list[SubtaskCreate]) -> list[dict[str, Any]]:
    """Turn subtask inputs into stored dicts, generating IDs where none were given."""
    return [
        Subtask(
            id=item.id or _new_subtask_id(),
            title=item.title,
            description=item.description,
            required=item.required,
        ).model_dump()
        for item in items
    ]


async def _reconcile(template_id: str) -> None:
    """Re-derive progress on assignments after the checklist changed."""
    from src.modules.tasks import service as assignment_service

    await assignment_service.reconcile_template_assignments(template_id=template_id)


async def create_template(
    *,
    title: str,
    description: str,
    category: TaskCategory | str = TaskCategory.DAILY,
    priority: TaskPriority | str = TaskPriority.MEDIUM,
    estimated_duration_hours: float,
    subtasks: list[SubtaskCreate] | list[dict[str, Any]] | None = None,
    assigned_workers: list[str] | None = None,
    created_by: str = "system",
) -> TaskTemplate:
    """Create a new task template.

    Args:
        title: Template title (e.g., "Daily Feeding")
        description: What the task involves
        category: Recurrence category
        priority: Priority level
        estimated_duration_hours: Estimated effort, must be positive
        subtasks: Ordered checklist items
        assigned_workers: Worker IDs typically responsible (informational)
        created_by: Supervisor creating the template

    Returns:
        Created template

    Raises:
        ValidationError: If title/description is blank or duration is not positive
    """
    with span("template_service.create_template"):
        try:
            payload = TemplateCreate(
                title=title,
                description=description,
                category=category,
                priority=priority,
                estimated_duration_hours=estimated_duration_hours,
                subtasks=subtasks or [],
                assigned_workers=assigned_workers or [],
                created_by=created_by,
            )
        except PydanticValidationError as e:
            logger.warning("Rejected template input", extra={"title": title, "error": str(e)})
            raise ValidationError.from_pydantic(e) from e

        record = await db_client.create_record(
            collection=COLLECTION,
            data={
                "title": payload.title,
                "description": payload.description,
                "category": payload.category,
                "priority": payload.priority,
                "estimated_duration_hours": payload.estimated_duration_hours,
                "subtasks": _build_subtasks(payload.subtasks),
                "assigned_workers": payload.assigned_workers,
                "created_by": payload.created_by,
                "created_date": clock.today().isoformat(),
            },
        )
        logger.info("Created template: %s (%d subtasks)", payload.title, len(payload.subtasks))

        return TaskTemplate.model_validate(record)


async def get_template(*, template_id: str) -> TaskTemplate:
    """Get a template by ID.

    Raises:
        NotFoundError: If template not found
    """
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=template_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(f"Template not found: {template_id}", code=ErrorCode.ERR_TEMPLATE_NOT_FOUND) from e
    return TaskTemplate.model_validate(record)


async def list_templates(*, category: TaskCategory | str | None = None) -> list[TaskTemplate]:
    """List templates, optionally restricted to one category.

    Raises:
        ValidationError: If category is not a known category
    """
    with span("template_service.list_templates"):
        filter_query = ""
        if category is not None:
            try:
                category = TaskCategory(category)
            except ValueError as e:
                raise ValidationError(f"Unknown category: {category}") from e
            filter_query = f'category = "{sanitize_param(category)}"'

        try:
            records = await db_client.list_all_records(collection=COLLECTION, filter_query=filter_query, sort="+title")
        except db_client.InvalidFilterError as e:
            raise ValidationError(f"Invalid template filter: {e}") from e
        logger.debug("Retrieved %d templates with filters: %s", len(records), filter_query)

        return [TaskTemplate.model_validate(record) for record in records]


async def update_template(*, template_id: str, fields: TemplateUpdate | dict[str, Any]) -> TaskTemplate:
    """Apply a partial update to a template.

    A `subtasks` entry replaces the checklist wholesale; assignments are then
    re-derived against the new checklist.

    Raises:
        NotFoundError: If template not found
        ValidationError: If any provided field is invalid
    """
    with span("template_service.update_template"):
        try:
            update = fields if isinstance(fields, TemplateUpdate) else TemplateUpdate.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        async with template_locks.hold(template_id):
            template = await get_template(template_id=template_id)

            data: dict[str, Any] = update.model_dump(exclude_unset=True, exclude_none=True, exclude={"subtasks"})
            if update.subtasks is not None:
                data["subtasks"] = _build_subtasks(update.subtasks)

            if not data:
                return template

            record = await db_client.update_record(collection=COLLECTION, record_id=template_id, data=data)
            logger.info("Updated template %s fields: %s", template_id, sorted(data))

        if "subtasks" in data:
            await _reconcile(template_id)

        return TaskTemplate.model_validate(record)


async def add_subtask(
    *,
    template_id: str,
    title: str,
    description: str = "",
    required: bool = True,
) -> TaskTemplate:
    """Append a subtask to a template's checklist.

    Raises:
        NotFoundError: If template not found
        ValidationError: If title is blank
    """
    with span("template_service.add_subtask"):
        try:
            item = SubtaskCreate(title=title, description=description, required=required)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        async with template_locks.hold(template_id):
            template = await get_template(template_id=template_id)
            subtasks = [subtask.model_dump() for subtask in template.subtasks]
            subtasks.extend(_build_subtasks([item]))

            record = await db_client.update_record(
                collection=COLLECTION,
                record_id=template_id,
                data={"subtasks": subtasks},
            )
            logger.info("Added subtask '%s' to template %s", item.title, template_id)

        await _reconcile(template_id)
        return TaskTemplate.model_validate(record)


async def remove_subtask(*, template_id: str, subtask_id: str) -> TaskTemplate:
    """Remove a subtask from a template's checklist.

    Assignments that had ticked the removed subtask keep a stale ID until they are
    re-derived; the stale ID never counts towards completion.

    Raises:
        NotFoundError: If template or subtask not found
    """
    with span("template_service.remove_subtask"):
        async with template_locks.hold(template_id):
            template = await get_template(template_id=template_id)
            if template.get_subtask(subtask_id) is None:
                raise NotFoundError(
                    f"Subtask {subtask_id} not found on template {template_id}",
                    code=ErrorCode.ERR_SUBTASK_NOT_FOUND,
                )

            subtasks = [subtask.model_dump() for subtask in template.subtasks if subtask.id != subtask_id]
            record = await db_client.update_record(
                collection=COLLECTION,
                record_id=template_id,
                data={"subtasks": subtasks},
            )
            logger.info("Removed subtask %s from template %s", subtask_id, template_id)

        await _reconcile(template_id)
        return TaskTemplate.model_validate(record)


async def delete_template(*, template_id: str) -> None:
    """Delete a template that no assignment references.

    Assignments are a historical record, so a referenced template is kept.

    Raises:
        NotFoundError: If template not found
        ConflictError: If any assignment references the template
    """
    with span("template_service.delete_template"):
        async with template_locks.hold(template_id):
            template = await get_template(template_id=template_id)

            reference = await db_client.get_first_record(
                collection="assignments",
                filter_query=f'template_id = "{sanitize_param(template_id)}"',
            )
            if reference is not None:
                raise ConflictError(
                    f"Template '{template.title}' is referenced by assignments and cannot be deleted",
                    code=ErrorCode.ERR_TEMPLATE_IN_USE,
                )

            await db_client.delete_record(collection=COLLECTION, record_id=template_id)
            logger.info("Deleted template %s (%s)", template_id, template.title)
