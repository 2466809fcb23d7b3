"""Unit tests for subtask completion tracking."""

import asyncio
from datetime import timedelta

import pytest

from src.core.errors import ErrorCode, NotFoundError
from src.domain.assignment import AssignmentStatus
from src.modules.tasks import service as assignment_service
from src.modules.tasks import templates, tracker
from tests.conftest import FROZEN_TODAY


TODAY = FROZEN_TODAY
YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
async def feeding_template(patched_db, feeding_subtasks):
    return await templates.create_template(
        title="Daily Feeding",
        description="Feed all livestock",
        estimated_duration_hours=2,
        subtasks=feeding_subtasks,
    )


@pytest.fixture
async def assignment(feeding_template, sample_workers):
    """Daily feeding assigned and due today."""
    return await assignment_service.create_assignment(
        template_id=feeding_template.id,
        worker_id=sample_workers["john"]["id"],
        assigned_date=TODAY,
        due_date=TODAY,
    )


@pytest.mark.unit
class TestToggleSubtask:
    """Tests for toggle_subtask function."""

    async def test_ticking_through_the_checklist(self, assignment):
        """Four subtasks ticked one by one: 25/50/75/100 and pending -> in-progress -> completed."""
        observed = []
        for subtask_id in ["st-1", "st-2", "st-3", "st-4"]:
            updated = await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id=subtask_id)
            observed.append((updated.completion_percentage, updated.status))

        assert observed == [
            (25.0, AssignmentStatus.IN_PROGRESS),
            (50.0, AssignmentStatus.IN_PROGRESS),
            (75.0, AssignmentStatus.IN_PROGRESS),
            (100.0, AssignmentStatus.COMPLETED),
        ]
        assert updated.started_date == TODAY
        assert updated.completed_date == TODAY

    async def test_untick_after_completion(self, assignment):
        for subtask_id in ["st-1", "st-2", "st-3", "st-4"]:
            await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id=subtask_id)

        reopened = await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-2")

        assert reopened.completion_percentage == 75.0
        assert reopened.status == AssignmentStatus.IN_PROGRESS
        assert reopened.completed_date is None
        assert reopened.started_date == TODAY

    async def test_toggle_twice_restores_state(self, assignment):
        await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-1")
        before = await assignment_service.get_assignment(assignment_id=assignment.id)

        await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-3")
        after = await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-3")

        assert after.completed_subtask_ids == before.completed_subtask_ids
        assert after.completion_percentage == before.completion_percentage
        assert after.status == before.status

    async def test_untick_to_zero_returns_to_pending(self, assignment):
        await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-1")
        updated = await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-1")

        assert updated.completion_percentage == 0.0
        assert updated.status == AssignmentStatus.PENDING
        assert updated.started_date == TODAY

    async def test_untick_to_zero_when_past_due_is_overdue(self, feeding_template, sample_workers):
        late = await assignment_service.create_assignment(
            template_id=feeding_template.id,
            worker_id=sample_workers["john"]["id"],
            assigned_date=YESTERDAY,
            due_date=YESTERDAY,
        )

        ticked = await tracker.toggle_subtask(assignment_id=late.id, subtask_id="st-1")
        unticked = await tracker.toggle_subtask(assignment_id=late.id, subtask_id="st-1")

        assert ticked.status == AssignmentStatus.OVERDUE
        assert unticked.status == AssignmentStatus.OVERDUE

    async def test_completing_overdue_work_completes_it(self, feeding_template, sample_workers):
        late = await assignment_service.create_assignment(
            template_id=feeding_template.id,
            worker_id=sample_workers["john"]["id"],
            assigned_date=YESTERDAY,
            due_date=YESTERDAY,
        )

        for subtask_id in feeding_template.subtask_ids:
            updated = await tracker.toggle_subtask(assignment_id=late.id, subtask_id=subtask_id)

        assert updated.status == AssignmentStatus.COMPLETED
        assert updated.completed_date == TODAY

    async def test_writes_all_derived_fields_in_one_update(self, assignment, patched_db):
        await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-1")

        assert len(patched_db.update_calls) == 1
        _, record_id, data = patched_db.update_calls[0]
        assert record_id == assignment.id
        assert set(data) == {
            "completed_subtask_ids",
            "completion_percentage",
            "status",
            "started_date",
            "completed_date",
        }

    async def test_unknown_subtask(self, assignment):
        with pytest.raises(NotFoundError) as exc_info:
            await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-99")

        assert exc_info.value.code == ErrorCode.ERR_SUBTASK_NOT_FOUND

    async def test_removed_subtask_cannot_be_toggled(self, assignment, feeding_template):
        await templates.remove_subtask(template_id=feeding_template.id, subtask_id="st-4")

        with pytest.raises(NotFoundError):
            await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-4")

    async def test_unknown_assignment(self, patched_db):
        with pytest.raises(NotFoundError) as exc_info:
            await tracker.toggle_subtask(assignment_id="404", subtask_id="st-1")

        assert exc_info.value.code == ErrorCode.ERR_ASSIGNMENT_NOT_FOUND

    async def test_template_without_subtasks_stays_at_zero(self, patched_db, sample_workers):
        empty = await templates.create_template(
            title="Fence Walk",
            description="Walk the perimeter fence",
            estimated_duration_hours=1,
        )
        created = await assignment_service.create_assignment(
            template_id=empty.id,
            worker_id=sample_workers["peter"]["id"],
            assigned_date=TODAY,
            due_date=TODAY,
        )

        live = await assignment_service.get_assignment(assignment_id=created.id)

        assert live.completion_percentage == 0.0
        assert live.status == AssignmentStatus.PENDING
        with pytest.raises(NotFoundError):
            await tracker.toggle_subtask(assignment_id=created.id, subtask_id="anything")

    async def test_stale_ids_never_count(self, assignment, feeding_template, patched_db):
        """An id left behind by a racing template edit is ignored on the next toggle."""
        await patched_db.update_record(
            collection="assignments",
            record_id=assignment.id,
            data={"completed_subtask_ids": ["removed-earlier"]},
        )

        updated = await tracker.toggle_subtask(assignment_id=assignment.id, subtask_id="st-1")

        assert updated.completed_subtask_ids == ["st-1"]
        assert updated.completion_percentage == 25.0

    async def test_concurrent_toggles_do_not_lose_updates(self, assignment):
        """Toggles of the same assignment are serialized."""
        await asyncio.gather(
            *(
                tracker.toggle_subtask(assignment_id=assignment.id, subtask_id=subtask_id)
                for subtask_id in ["st-1", "st-2", "st-3", "st-4"]
            )
        )

        final = await assignment_service.get_assignment(assignment_id=assignment.id)
        assert sorted(final.completed_subtask_ids) == ["st-1", "st-2", "st-3", "st-4"]
        assert final.status == AssignmentStatus.COMPLETED
