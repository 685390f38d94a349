"""SQL Ledger Store — whole-snapshot persistence with optimistic versioning.

Invariants:
    - read_snapshot returns the stored document and its version (empty, version 0, if none)
    - write_snapshot succeeds only if the stored version still equals snapshot.version;
      otherwise it raises ConcurrencyError and writes nothing
    - On success snapshot.version is advanced to the stored version
    - SQLAlchemy failures surface as StoreUnavailableError (via DatabaseSessionManager)

Design Decisions:
    - UPDATE ... WHERE version = :expected over SELECT FOR UPDATE: works on SQLite and
      Postgres alike and lets multiple processes share one document safely
    - First write is an INSERT; a duplicate-key race is reported as ConcurrencyError
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from marketplace.core.errors import ConcurrencyError
from marketplace.core.ledger_snapshot import from_document, to_document
from marketplace.core.ledger_types import LedgerSnapshot
from marketplace.infrastructure.database import DatabaseSessionManager
from marketplace.models.ledger_document import LEDGER_ID, LedgerDocument

logger = logging.getLogger(__name__)


class SqlLedgerStore:
    """LedgerStore backed by one versioned JSON row."""

    def __init__(self, db: DatabaseSessionManager, ledger_id: str = LEDGER_ID):
        self._db = db
        self._ledger_id = ledger_id

    async def read_snapshot(self) -> LedgerSnapshot:
        async with self._db.session() as session:
            result = await session.execute(
                select(LedgerDocument).where(LedgerDocument.id == self._ledger_id),
            )
            row = result.scalar_one_or_none()
            if row is None:
                return LedgerSnapshot(version=0)
            return from_document(row.body, version=row.version)

    async def write_snapshot(self, snapshot: LedgerSnapshot) -> int:
        expected = snapshot.version
        body = to_document(snapshot)
        now = datetime.now(timezone.utc)

        async with self._db.session() as session:
            if expected == 0:
                session.add(LedgerDocument(
                    id=self._ledger_id, version=1, body=body, updated_at=now,
                ))
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    raise ConcurrencyError("Ledger was initialised by another writer")
            else:
                result = await session.execute(
                    update(LedgerDocument)
                    .where(
                        LedgerDocument.id == self._ledger_id,
                        LedgerDocument.version == expected,
                    )
                    .values(version=expected + 1, body=body, updated_at=now),
                )
                if result.rowcount != 1:
                    await session.rollback()
                    raise ConcurrencyError(
                        f"Ledger version {expected} is stale",
                    )
                await session.commit()

        snapshot.version = expected + 1
        logger.debug(f"Ledger written at version {snapshot.version}")
        return snapshot.version
