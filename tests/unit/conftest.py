"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Callable
from typing import Any

import pytest

from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db, frozen_clock):
    """Patches src.core.db_client functions to use InMemoryDBClient.

    Also pins the farm calendar so status derivation is deterministic.
    """
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def worker_factory(patched_db: InMemoryDBClient) -> Callable[..., dict[str, Any]]:
    """Factory for seeding workers into the directory.

    Usage:
        worker = worker_factory(name="Mary Wanjiku", role="Livestock Manager")
    """

    def _create_worker(**kwargs: Any) -> dict[str, Any]:
        data = {"name": "John Kamau", "role": "Field Worker", "email": "", "phone": ""}
        data.update(kwargs)
        return patched_db.seed("workers", data)

    return _create_worker


@pytest.fixture
def sample_workers(worker_factory) -> dict[str, dict[str, Any]]:
    """Create a small crew."""
    return {
        "john": worker_factory(name="John Kamau", role="Field Worker"),
        "mary": worker_factory(name="Mary Wanjiku", role="Livestock Manager"),
        "peter": worker_factory(name="Peter Mwangi", role="Equipment Operator"),
    }


@pytest.fixture
def feeding_subtasks() -> list[dict[str, Any]]:
    """Four required subtasks of the daily feeding round."""
    return [
        {"id": "st-1", "title": "Prepare feed mix"},
        {"id": "st-2", "title": "Distribute feed to cattle"},
        {"id": "st-3", "title": "Check water troughs"},
        {"id": "st-4", "title": "Record feed consumption"},
    ]
