"""Logfire setup for the service.

Modules log through `logging.getLogger(__name__)` with structured `extra=` fields;
`configure_logfire` routes those records to Logfire.
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import settings


logger = logging.getLogger(__name__)


def configure_logfire() -> None:
    """Configure Logfire and send standard library logging through it.

    Without a token nothing leaves the process; spans and logs stay local.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="farmtasks",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)
    logger.info("Logfire configured", extra={"environment": settings.environment})


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by the app."""
    logfire.instrument_fastapi(app)


def span(name: str) -> logfire.LogfireSpan:
    """Open a Logfire span around one service operation, e.g. `span("tracker.toggle_subtask")`."""
    return logfire.span(name)
