"""Worker directory lookups (read-only)."""

import logging

from src.core import db_client
from src.core.errors import ErrorCode, NotFoundError
from src.core.logging import span
from src.domain.worker import Worker


logger = logging.getLogger(__name__)


async def resolve_worker(*, worker_id: str) -> Worker:
    """Look up a worker in the directory.

    Args:
        worker_id: Worker ID

    Returns:
        The worker

    Raises:
        NotFoundError: If no worker has this ID
    """
    with span("worker_service.resolve_worker"):
        try:
            record = await db_client.get_record(collection="workers", record_id=worker_id)
        except db_client.RecordNotFoundError as e:
            logger.warning("Worker not found", extra={"worker_id": worker_id})
            raise NotFoundError(f"Worker not found: {worker_id}", code=ErrorCode.ERR_WORKER_NOT_FOUND) from e

        return Worker.model_validate(record)


async def list_workers() -> list[Worker]:
    """List every worker in the directory, ordered by name."""
    with span("worker_service.list_workers"):
        records = await db_client.list_all_records(collection="workers", sort="+name")
        return [Worker.model_validate(record) for record in records]
