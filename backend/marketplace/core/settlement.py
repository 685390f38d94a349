"""Settlement — correlation keys and the pure payment-completed transition.

Invariants:
    - CorrelationKey (kind + transaction id) is the ONLY join between a provider
      event and local state; it round-trips through checkout-session metadata
    - apply_payment_completed never raises for unknown, duplicate or late events:
      it returns a SettlementOutcome and leaves the snapshot untouched
    - A transaction advances at most once: APPLIED happens only from a
      pre-settlement status, so repeated delivery converges to one state

Design Decisions:
    - Outcome enum over bool: the shell logs duplicates and unmatched events
      differently and writes the snapshot only on APPLIED
    - Payment completion approves a rental directly (no owner-approval step)
"""

from dataclasses import dataclass
from enum import Enum

from marketplace.core.audit_trail import append_audit
from marketplace.core.domain_types import (
    AuditAction, BookingStatus, OrderStatus, TransactionKind, PAYMENT_ACTOR,
    PRE_SETTLEMENT_BOOKING_STATUSES, PRE_SETTLEMENT_ORDER_STATUSES,
)
from marketplace.core.ledger_types import Booking, LedgerSnapshot, Order, Stamp


_ID_FIELDS = {
    TransactionKind.RENT: "bookingId",
    TransactionKind.SELL: "orderId",
}


class SettlementOutcome(str, Enum):
    APPLIED = "applied"
    ALREADY_SETTLED = "already_settled"
    IGNORED_CANCELLED = "ignored_cancelled"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class CorrelationKey:
    """Transaction type + id, embedded in the provider's session metadata."""
    kind: TransactionKind
    transaction_id: str

    def to_metadata(self) -> dict[str, str]:
        return {
            "type": self.kind.value,
            _ID_FIELDS[self.kind]: self.transaction_id,
        }

    @classmethod
    def from_metadata(cls, metadata: dict | None) -> "CorrelationKey | None":
        """Parse metadata echoed back by the provider; None if unusable."""
        if not metadata:
            return None
        try:
            kind = TransactionKind(metadata.get("type"))
        except ValueError:
            return None
        transaction_id = metadata.get(_ID_FIELDS[kind])
        if not transaction_id:
            return None
        return cls(kind=kind, transaction_id=str(transaction_id))

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.transaction_id}"


def find_transaction(
    snapshot: LedgerSnapshot, key: CorrelationKey,
) -> Booking | Order | None:
    if key.kind == TransactionKind.RENT:
        return snapshot.find_booking(key.transaction_id)
    return snapshot.find_order(key.transaction_id)


def apply_payment_completed(
    snapshot: LedgerSnapshot, key: CorrelationKey, stamp: Stamp,
) -> SettlementOutcome:
    """Advance the keyed transaction to approved/paid, at most once."""
    transaction = find_transaction(snapshot, key)
    if transaction is None:
        return SettlementOutcome.UNMATCHED

    if isinstance(transaction, Booking):
        return _settle_booking(snapshot, transaction, stamp)
    return _settle_order(snapshot, transaction, stamp)


def _settle_booking(
    snapshot: LedgerSnapshot, booking: Booking, stamp: Stamp,
) -> SettlementOutcome:
    if booking.status == BookingStatus.CANCELLED:
        return SettlementOutcome.IGNORED_CANCELLED
    if booking.status not in PRE_SETTLEMENT_BOOKING_STATUSES:
        return SettlementOutcome.ALREADY_SETTLED
    booking.status = BookingStatus.APPROVED
    append_audit(
        snapshot, AuditAction.RENT_PAID_APPROVED, booking.id,
        PAYMENT_ACTOR, stamp,
    )
    return SettlementOutcome.APPLIED


def _settle_order(
    snapshot: LedgerSnapshot, order: Order, stamp: Stamp,
) -> SettlementOutcome:
    if order.status == OrderStatus.CANCELLED:
        return SettlementOutcome.IGNORED_CANCELLED
    if order.status not in PRE_SETTLEMENT_ORDER_STATUSES:
        return SettlementOutcome.ALREADY_SETTLED
    order.status = OrderStatus.PAID
    append_audit(
        snapshot, AuditAction.SELL_PAID_APPROVED, order.id,
        PAYMENT_ACTOR, stamp,
    )
    return SettlementOutcome.APPLIED
