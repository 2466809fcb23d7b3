"""Workers module backing the read-only worker directory."""

from src.core.module import ScheduledJob


class WorkersModule:
    """Worker directory storage.

    The directory is maintained outside this service (HR, onboarding); this
    module only declares the table so a local SQLite deployment can hold a copy.
    """

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        return "workers"

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        return "Read-only directory of farm workers"

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module."""
        return {
            "workers": """CREATE TABLE IF NOT EXISTS workers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL DEFAULT (datetime('now')),
        updated TEXT NOT NULL DEFAULT (datetime('now')),
        name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT '',
        email TEXT NOT NULL DEFAULT '',
        phone TEXT NOT NULL DEFAULT ''
    )""",
        }

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables."""
        return ["CREATE INDEX IF NOT EXISTS idx_workers_name ON workers (name)"]

    def get_scheduled_jobs(self) -> list[ScheduledJob]:
        """Return scheduled jobs for this module."""
        return []
