"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries into typed objects with validation.
"""

from datetime import date

from pydantic import BaseModel


class CompletionStats(BaseModel):
    """Assignment counts and completion rate for a worker or the whole farm."""

    total: int
    completed: int
    in_progress: int
    overdue: int
    completion_rate_percent: float


class WorkerPerformance(CompletionStats):
    """One row of the worker performance table."""

    worker_id: str
    worker_name: str
    role: str


class OverdueAssignment(BaseModel):
    """Assignment whose due date has passed without completion."""

    id: str
    template_title: str
    worker_id: str
    worker_name: str
    due_date: date
    days_overdue: int
    completion_percentage: float


class OverdueSweepResult(BaseModel):
    """Outcome of a scheduled overdue sweep."""

    checked: int
    updated: int
    overdue: int
