"""Ledger — serialized read-modify-write over the whole-document store.

Invariants:
    - mutate() runs read -> fn(snapshot) -> write as one critical section;
      within a process only one mutation is in flight at a time (asyncio.Lock)
    - Across processes the store's version check detects lost races; the whole
      cycle (including fn's checks) is re-run against the fresh snapshot
    - A domain error raised by fn aborts the cycle: nothing is written
    - read() takes no lock and is for read-only paths only

Design Decisions:
    - fn is a synchronous core function: no IO can happen inside the critical section
    - Retries bounded by ledger_max_write_retries, then ConcurrencyError propagates
"""

import asyncio
import logging
from collections.abc import Callable
from typing import TypeVar

from marketplace.core.errors import ConcurrencyError
from marketplace.core.ledger_types import LedgerSnapshot
from marketplace.core.repository_protocols import LedgerStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Ledger:
    """Single-writer gateway to the LedgerStore."""

    def __init__(self, store: LedgerStore, max_write_retries: int = 3):
        self._store = store
        self._max_write_retries = max_write_retries
        self._lock = asyncio.Lock()

    async def read(self) -> LedgerSnapshot:
        return await self._store.read_snapshot()

    async def mutate(
        self,
        fn: Callable[[LedgerSnapshot], T],
        *,
        should_write: Callable[[T], bool] | None = None,
    ) -> T:
        """Apply fn to a fresh snapshot and persist it atomically.

        should_write lets idempotent callers skip the write when fn changed nothing.
        """
        async with self._lock:
            for attempt in range(self._max_write_retries + 1):
                snapshot = await self._store.read_snapshot()
                result = fn(snapshot)
                if should_write is not None and not should_write(result):
                    return result
                try:
                    await self._store.write_snapshot(snapshot)
                    return result
                except ConcurrencyError:
                    if attempt >= self._max_write_retries:
                        raise
                    logger.warning(
                        "Ledger write lost a version race, retrying",
                        extra={"attempt": attempt + 1},
                    )
        raise ConcurrencyError("Ledger write retries exhausted")
