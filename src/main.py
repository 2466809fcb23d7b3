"""farmtasks - Farm task orchestration and assignment tracking."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core.config import constants, settings
from src.core.db_client import close_connection, init_db
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.module_registry import register_default_modules
from src.core.scheduler import scheduler, start_scheduler, stop_scheduler
from src.core.scheduler_tracker import job_tracker
from src.interface.api_router import register_exception_handlers, router as api_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so startup logs are captured
    configure_logfire()

    register_default_modules()
    await init_db()
    logger.info("Database initialized", extra={"db_path": settings.sqlite_db_path})

    if settings.enable_scheduler:
        start_scheduler()
    else:
        logger.info("Scheduler disabled by configuration")
    yield
    stop_scheduler()
    await close_connection()


app = FastAPI(
    title="farmtasks",
    description="Farm task templates, worker assignments and completion tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

register_exception_handlers(app)
app.include_router(api_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint with scheduled job statuses."""
    jobs = job_tracker.all_statuses()
    has_failures = any(job.consecutive_failures > 0 for job in jobs)
    overall_status = "degraded" if has_failures else "healthy"

    return JSONResponse(
        content={
            "status": overall_status,
            "scheduler_running": scheduler.running,
            "jobs": {
                job.job_name: {**job.model_dump(mode="json"), "currently_running": job.currently_running}
                for job in jobs
            },
        },
        status_code=constants.HTTP_OK if overall_status == "healthy" else constants.HTTP_SERVICE_UNAVAILABLE,
    )
