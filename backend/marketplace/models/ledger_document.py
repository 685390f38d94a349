"""LedgerDocument ORM — the single row holding the whole marketplace document.

Invariants:
    - One row per ledger (id "main"); body is the JSON produced by core/ledger_snapshot
    - version increases by exactly 1 on every successful write
    - Writers update with WHERE version = <version they read> (compare-and-swap)

Design Decisions:
    - JSON column for the document: whole-snapshot read/write, no per-entity tables
      (ADR: the document is the unit of consistency)
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.db.base import Base


LEDGER_ID = "main"


class LedgerDocument(Base):
    """Versioned whole-document snapshot."""
    __tablename__ = "ledger_documents"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    body: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
