"""Pytest configuration and fixtures for integration tests against a real SQLite file."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest

from src.core import db_client
from src.core.config import settings


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch, frozen_clock) -> AsyncGenerator[str]:
    """Point the client at a fresh database file and create the schema."""
    db_path = str(tmp_path / "farmtasks.db")
    monkeypatch.setattr(settings, "sqlite_db_path", db_path)

    await db_client.init_db()
    yield db_path
    await db_client.close_connection()


@pytest.fixture
async def crew(sqlite_db) -> dict[str, dict[str, Any]]:
    """The demo farm's workers."""
    people = {
        "john": ("John Kamau", "Field Worker"),
        "mary": ("Mary Wanjiku", "Livestock Manager"),
        "peter": ("Peter Mwangi", "Equipment Operator"),
    }
    created = {}
    for key, (name, role) in people.items():
        created[key] = await db_client.create_record(collection="workers", data={"name": name, "role": role})
    return created
