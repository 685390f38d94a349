"""Audit Trail — append-only, bounded log of domain events inside the ledger document.

Invariants:
    - Entries are only ever appended; the oldest are dropped past AUDIT_RETENTION
    - append_audit mutates the snapshot it is given and nothing else
    - Every mutating operation appends exactly one entry in the same write
"""

from marketplace.core.domain_types import AuditAction
from marketplace.core.ledger_types import AuditEntry, LedgerSnapshot, Stamp


AUDIT_RETENTION: int = 1000
AUDIT_PAGE_SIZE: int = 300


def append_audit(
    snapshot: LedgerSnapshot,
    action: AuditAction,
    detail: str,
    by: str,
    stamp: Stamp,
) -> AuditEntry:
    entry = AuditEntry(
        id=stamp.new_id(8), action=action.value, detail=detail,
        by=by, at=stamp.at,
    )
    snapshot.audit.append(entry)
    if len(snapshot.audit) > AUDIT_RETENTION:
        del snapshot.audit[:-AUDIT_RETENTION]
    return entry


def recent_audit(
    snapshot: LedgerSnapshot, limit: int = AUDIT_PAGE_SIZE,
) -> list[AuditEntry]:
    """Most recent entries, oldest first."""
    return snapshot.audit[-limit:]
