"""Tests for the REST interface."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from src.core.scheduler_tracker import job_tracker
from src.main import app
from tests.conftest import FROZEN_TODAY


TODAY = FROZEN_TODAY.isoformat()
YESTERDAY = (FROZEN_TODAY - timedelta(days=1)).isoformat()


@pytest.fixture
def client(patched_db) -> TestClient:
    """Create a test client for FastAPI app backed by the in-memory database."""
    return TestClient(app)


@pytest.fixture
def template(client, feeding_subtasks) -> dict:
    response = client.post(
        "/templates",
        json={
            "title": "Daily Feeding",
            "description": "Feed all livestock",
            "category": "daily",
            "priority": "high",
            "estimated_duration_hours": 2,
            "subtasks": feeding_subtasks,
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def assignment(client, template, sample_workers) -> dict:
    response = client.post(
        "/assignments",
        json={
            "template_id": template["id"],
            "worker_id": sample_workers["john"]["id"],
            "assigned_date": TODAY,
            "due_date": TODAY,
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.unit
class TestTemplateRoutes:
    """Tests for /templates routes."""

    def test_create_and_get(self, client, template):
        response = client.get(f"/templates/{template['id']}")

        assert response.status_code == 200
        assert response.json()["title"] == "Daily Feeding"
        assert [s["id"] for s in response.json()["subtasks"]] == ["st-1", "st-2", "st-3", "st-4"]

    def test_create_rejects_non_positive_duration_with_400(self, client):
        response = client.post(
            "/templates",
            json={"title": "Irrigation", "description": "Water fields", "estimated_duration_hours": 0},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "ERR_VALIDATION"
        assert "greater than 0" in body["message"]

    def test_create_rejects_missing_fields_with_400(self, client):
        response = client.post("/templates", json={"title": "Irrigation"})

        assert response.status_code == 400
        assert response.json()["code"] == "ERR_VALIDATION"

    def test_list_by_category(self, client, template):
        assert len(client.get("/templates", params={"category": "daily"}).json()) == 1
        assert client.get("/templates", params={"category": "weekly"}).json() == []

    def test_patch_template(self, client, template):
        response = client.patch(f"/templates/{template['id']}", json={"title": "Morning Feeding"})

        assert response.status_code == 200
        assert response.json()["title"] == "Morning Feeding"

    def test_subtask_routes(self, client, template):
        added = client.post(f"/templates/{template['id']}/subtasks", json={"title": "Clean feeders"})
        removed = client.delete(f"/templates/{template['id']}/subtasks/st-1")

        assert added.status_code == 201
        assert len(added.json()["subtasks"]) == 5
        assert removed.status_code == 200
        assert "st-1" not in [s["id"] for s in removed.json()["subtasks"]]

    def test_delete_referenced_template_is_409(self, client, assignment, template):
        response = client.delete(f"/templates/{template['id']}")

        assert response.status_code == 409
        assert response.json()["code"] == "ERR_TEMPLATE_IN_USE"

    def test_delete_unreferenced_template(self, client, template):
        assert client.delete(f"/templates/{template['id']}").status_code == 204
        assert client.get(f"/templates/{template['id']}").status_code == 404


@pytest.mark.unit
class TestAssignmentRoutes:
    """Tests for /assignments routes."""

    def test_toggle_and_verify_flow(self, client, assignment):
        assignment_id = assignment["id"]

        early = client.post(f"/assignments/{assignment_id}/verify", json={"verifier_id": "sup1"})
        for subtask_id in ["st-1", "st-2", "st-3", "st-4"]:
            toggled = client.post(f"/assignments/{assignment_id}/subtasks/{subtask_id}/toggle")
        verified = client.post(f"/assignments/{assignment_id}/verify", json={"verifier_id": "sup1"})

        assert early.status_code == 409
        assert early.json()["code"] == "ERR_NOT_COMPLETED"
        assert toggled.json()["status"] == "completed"
        assert toggled.json()["completion_percentage"] == 100.0
        assert verified.status_code == 200
        assert verified.json()["verified_by"] == "sup1"

    def test_due_before_assigned_is_400(self, client, template, sample_workers):
        response = client.post(
            "/assignments",
            json={
                "template_id": template["id"],
                "worker_id": sample_workers["john"]["id"],
                "assigned_date": TODAY,
                "due_date": YESTERDAY,
            },
        )

        assert response.status_code == 400
        assert response.json()["code"] == "ERR_VALIDATION"

    def test_unknown_worker_is_404(self, client, template):
        response = client.post(
            "/assignments",
            json={"template_id": template["id"], "worker_id": "999", "assigned_date": TODAY, "due_date": TODAY},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "ERR_WORKER_NOT_FOUND"

    def test_unknown_subtask_is_404(self, client, assignment):
        response = client.post(f"/assignments/{assignment['id']}/subtasks/st-99/toggle")

        assert response.status_code == 404
        assert response.json()["code"] == "ERR_SUBTASK_NOT_FOUND"

    def test_list_with_query_filters(self, client, assignment, sample_workers):
        by_worker = client.get("/assignments", params={"worker": sample_workers["john"]["id"]})
        by_date = client.get("/assignments", params={"date": YESTERDAY})
        by_status = client.get("/assignments", params={"status": "pending"})

        assert [a["id"] for a in by_worker.json()] == [assignment["id"]]
        assert by_date.json() == []
        assert [a["id"] for a in by_status.json()] == [assignment["id"]]

    def test_worker_query_with_ampersands_is_empty(self, client, assignment):
        response = client.get("/assignments", params={"worker": "a&&b"})

        assert response.status_code == 200
        assert response.json() == []

    def test_bulk_assignment(self, client, template, sample_workers):
        worker_ids = [sample_workers["john"]["id"], sample_workers["peter"]["id"]]

        response = client.post(
            "/assignments/bulk",
            json={"template_id": template["id"], "worker_ids": worker_ids, "assigned_date": TODAY, "due_date": TODAY},
        )

        assert response.status_code == 201
        assert [a["worker_name"] for a in response.json()] == ["John Kamau", "Peter Mwangi"]

    def test_bulk_assignment_without_workers_is_400(self, client, template):
        response = client.post(
            "/assignments/bulk",
            json={"template_id": template["id"], "worker_ids": [], "assigned_date": TODAY, "due_date": TODAY},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "ERR_VALIDATION"

    def test_invalid_status_query_is_400(self, client):
        response = client.get("/assignments", params={"status": "archived"})

        assert response.status_code == 400

    def test_overdue_listing(self, client, template, sample_workers):
        created = client.post(
            "/assignments",
            json={
                "template_id": template["id"],
                "worker_id": sample_workers["mary"]["id"],
                "assigned_date": YESTERDAY,
                "due_date": YESTERDAY,
            },
        ).json()

        response = client.get("/assignments/overdue")

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [created["id"]]
        assert response.json()[0]["days_overdue"] == 1


@pytest.mark.unit
class TestStatsRoutes:
    """Tests for performance routes."""

    def test_worker_and_global_stats(self, client, assignment, sample_workers):
        client.post(f"/assignments/{assignment['id']}/subtasks/st-1/toggle")

        worker = client.get(f"/workers/{sample_workers['john']['id']}/stats").json()
        overall = client.get("/stats").json()

        assert worker == {"total": 1, "completed": 0, "in_progress": 1, "overdue": 0, "completion_rate_percent": 0.0}
        assert overall == worker

    def test_unknown_worker_stats_is_404(self, client):
        assert client.get("/workers/999/stats").status_code == 404

    def test_performance_table(self, client, assignment, sample_workers):
        rows = client.get("/workers/stats").json()

        assert {row["worker_name"] for row in rows} == {"John Kamau", "Mary Wanjiku", "Peter Mwangi"}


@pytest.mark.unit
class TestHealthRoute:
    """Tests for the health endpoint."""

    def test_healthy_without_failures(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_degraded_after_job_failure(self, client):
        job_tracker.record_job_failure("overdue_sweep", "Failed after 3 attempts: boom")

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["jobs"]["overdue_sweep"]["consecutive_failures"] == 1
