"""Per-key asyncio locks for serializing writes to a single record."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


logger = logging.getLogger(__name__)


class KeyedLocks:
    """Registry handing out one asyncio.Lock per key.

    Writers holding the lock for one key never block writers of another key.
    Locks are dropped once nobody holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire the lock for `key` for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)

    def clear(self) -> None:
        """Forget all locks (test helper; never call while locks are held)."""
        if self._waiters:
            logger.warning("Clearing keyed locks while held", extra={"held": list(self._waiters)})
        self._locks.clear()
        self._waiters.clear()


# One writer at a time per assignment id
assignment_locks = KeyedLocks()

# Serializes read-modify-write edits of a template's subtask checklist
template_locks = KeyedLocks()
