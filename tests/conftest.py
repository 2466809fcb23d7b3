"""Pytest configuration and shared fixtures."""

from collections.abc import Generator
from datetime import date

import logfire
import pytest

from src.core import clock
from src.core.locks import assignment_locks, template_locks
from src.core.module_registry import register_default_modules
from src.core.scheduler_tracker import job_tracker


# A Wednesday, so due dates on either side stay inside the same week
FROZEN_TODAY = date(2026, 3, 11)


@pytest.fixture(scope="session", autouse=True)
def _configure_logfire() -> None:
    """Keep Logfire local so spans work without a token or network."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture(scope="session", autouse=True)
def _register_modules() -> None:
    """Register the feature modules once so table schemas and jobs are known."""
    register_default_modules()


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None]:
    """Forget per-key locks and job history between tests."""
    yield
    assignment_locks.clear()
    template_locks.clear()
    job_tracker.reset()


class FrozenClock:
    """Mutable stand-in for the farm calendar."""

    def __init__(self, today: date) -> None:
        self.current = today

    def today(self) -> date:
        return self.current

    def set(self, today: date) -> None:
        self.current = today


@pytest.fixture
def frozen_clock(monkeypatch) -> FrozenClock:
    """Pin clock.today() to a known date; call .set() to move time forward."""
    frozen = FrozenClock(FROZEN_TODAY)
    monkeypatch.setattr("src.core.clock.today", frozen.today)
    assert clock.today() == FROZEN_TODAY
    return frozen
