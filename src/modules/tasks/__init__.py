"""Tasks module for farm task orchestration."""

from src.core.module import ScheduledJob


class TasksModule:
    """Tasks module for templated farm work.

    Provides:
    - Task templates with ordered subtask checklists
    - Assignments of templates to workers for date ranges
    - Subtask completion tracking with derived status
    - Supervisor verification
    - Worker and farm performance analytics
    - Daily overdue sweep
    """

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        return "tasks"

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        return "Farm task templates, assignments, completion tracking and performance"

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module."""
        return {
            "task_templates": """CREATE TABLE IF NOT EXISTS task_templates (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL DEFAULT (datetime('now')),
        updated TEXT NOT NULL DEFAULT (datetime('now')),
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        category TEXT NOT NULL
            CHECK (category IN ('daily', 'weekly', 'monthly', 'seasonal', 'one-time')),
        priority TEXT NOT NULL DEFAULT 'medium'
            CHECK (priority IN ('low', 'medium', 'high', 'critical')),
        estimated_duration_hours REAL NOT NULL CHECK (estimated_duration_hours > 0),
        subtasks TEXT NOT NULL DEFAULT '[]',
        assigned_workers TEXT NOT NULL DEFAULT '[]',
        created_by TEXT NOT NULL DEFAULT 'system',
        created_date TEXT NOT NULL
    )""",
            "assignments": """CREATE TABLE IF NOT EXISTS assignments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL DEFAULT (datetime('now')),
        updated TEXT NOT NULL DEFAULT (datetime('now')),
        template_id INTEGER NOT NULL REFERENCES task_templates(id),
        template_title TEXT NOT NULL,
        template_category TEXT NOT NULL,
        worker_id INTEGER NOT NULL REFERENCES workers(id),
        worker_name TEXT NOT NULL,
        assigned_date TEXT NOT NULL,
        due_date TEXT NOT NULL CHECK (due_date >= assigned_date),
        started_date TEXT,
        completed_date TEXT,
        completed_subtask_ids TEXT NOT NULL DEFAULT '[]',
        completion_percentage REAL NOT NULL DEFAULT 0
            CHECK (completion_percentage BETWEEN 0 AND 100),
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'in-progress', 'completed', 'overdue')),
        notes TEXT NOT NULL DEFAULT '',
        verified_by TEXT,
        verified_date TEXT
    )""",
        }

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables."""
        return [
            "CREATE INDEX IF NOT EXISTS idx_task_templates_category ON task_templates (category)",
            "CREATE INDEX IF NOT EXISTS idx_assignments_template ON assignments (template_id)",
            "CREATE INDEX IF NOT EXISTS idx_assignments_worker ON assignments (worker_id)",
            "CREATE INDEX IF NOT EXISTS idx_assignments_due_date ON assignments (due_date)",
            "CREATE INDEX IF NOT EXISTS idx_assignments_status ON assignments (status)",
        ]

    def get_scheduled_jobs(self) -> list[ScheduledJob]:
        """Return scheduled jobs for this module."""
        import src.modules.tasks.scheduler_jobs

        return src.modules.tasks.scheduler_jobs.get_scheduled_jobs()
