"""Booking/Order State Machine — legal lifecycle transitions and their preconditions.

Invariants:
    - Booking: pending -> payment_required -> approved -> completed;
      pending|payment_required -> cancelled
    - Order: created -> payment_required -> paid -> completed;
      created|payment_required -> cancelled
    - Checkout never re-enters a settled transaction (AlreadySettledError)
    - create_booking checks conflicts against the snapshot it is about to mutate,
      so the shell must hold the write section across the whole call
    - Every successful mutation appends one audit entry

Design Decisions:
    - plan_checkout is read-only: the shell talks to the payment provider between
      planning and mark_payment_required, without holding the write section
    - mark_payment_required re-validates status: the snapshot may have moved
      (e.g. a completion event landed) while the provider call was in flight
    - payment_required -> payment_required is legal: an unpaid checkout may be reopened
"""

from dataclasses import dataclass, field
from datetime import date

from marketplace.core.audit_trail import append_audit
from marketplace.core.availability import has_conflict
from marketplace.core.domain_types import (
    AuditAction, BookingStatus, ItemMode, OrderStatus, TransactionKind,
    SETTLED_BOOKING_STATUSES, SETTLED_ORDER_STATUSES,
)
from marketplace.core.errors import (
    AlreadySettledError, BookingConflictError, InvalidDateRangeError,
    InvalidModeError, InvalidTransitionError, ResourceNotFoundError,
    SellerNotOnboardedError,
)
from marketplace.core.ledger_types import (
    Booking, Item, LedgerSnapshot, Order, RentListing, SaleListing, Stamp,
)
from marketplace.core.pricing import quote_order, quote_rent
from marketplace.core.settlement import CorrelationKey, find_transaction


BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.PAYMENT_REQUIRED,
        BookingStatus.APPROVED,  # completion event may overtake checkout bookkeeping
        BookingStatus.CANCELLED,
    }),
    BookingStatus.PAYMENT_REQUIRED: frozenset({
        BookingStatus.PAYMENT_REQUIRED,
        BookingStatus.APPROVED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.APPROVED: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({
        OrderStatus.PAYMENT_REQUIRED,
        OrderStatus.PAID,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PAYMENT_REQUIRED: frozenset({
        OrderStatus.PAYMENT_REQUIRED,
        OrderStatus.PAID,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PAID: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: BookingStatus | OrderStatus, target: BookingStatus | OrderStatus) -> bool:
    table = (
        BOOKING_TRANSITIONS if isinstance(current, BookingStatus)
        else ORDER_TRANSITIONS
    )
    return target in table[current]


def _transition(
    transaction: Booking | Order, target: BookingStatus | OrderStatus,
) -> None:
    if not can_transition(transaction.status, target):
        raise InvalidTransitionError(
            transaction.id, transaction.status.value, target.value,
        )
    transaction.status = target


def _require_item(snapshot: LedgerSnapshot, item_id: str) -> Item:
    item = snapshot.find_item(item_id)
    if item is None:
        raise ResourceNotFoundError("Item", item_id)
    return item


def _require_transaction(
    snapshot: LedgerSnapshot, key: CorrelationKey,
) -> Booking | Order:
    transaction = find_transaction(snapshot, key)
    if transaction is None:
        kind = "Booking" if key.kind == TransactionKind.RENT else "Order"
        raise ResourceNotFoundError(kind, key.transaction_id)
    return transaction


def _is_settled(transaction: Booking | Order) -> bool:
    if isinstance(transaction, Booking):
        return transaction.status in SETTLED_BOOKING_STATUSES
    return transaction.status in SETTLED_ORDER_STATUSES


# ─── Creation ────────────────────────────────────────────────────

def create_booking(
    snapshot: LedgerSnapshot,
    item_id: str,
    borrower_id: str,
    start: date,
    end: date,
    stamp: Stamp,
) -> Booking:
    """Request a rental. Checks run in order: item, mode, dates, conflict."""
    item = _require_item(snapshot, item_id)
    if not isinstance(item, RentListing):
        raise InvalidModeError(item_id, ItemMode.RENT.value)
    if not start < end:
        raise InvalidDateRangeError(start, end)
    if has_conflict(item_id, start, end, snapshot.bookings):
        raise BookingConflictError(item_id)

    booking = Booking(
        id=stamp.new_id(8),
        item_id=item_id,
        owner_id=item.owner_id,
        borrower_id=borrower_id,
        start_date=start,
        end_date=end,
        status=BookingStatus.PENDING,
        created_at=stamp.at,
    )
    snapshot.bookings.append(booking)
    append_audit(
        snapshot, AuditAction.REQUEST_BOOKING, booking.id, borrower_id, stamp,
    )
    return booking


def create_order(
    snapshot: LedgerSnapshot, item_id: str, buyer_id: str, stamp: Stamp,
) -> Order:
    """Open a purchase order; the sale price is frozen onto the order."""
    item = _require_item(snapshot, item_id)
    if not isinstance(item, SaleListing):
        raise InvalidModeError(item_id, ItemMode.SELL.value)

    order = Order(
        id=stamp.new_id(8),
        item_id=item_id,
        buyer_id=buyer_id,
        seller_id=item.owner_id,
        price=item.price_sell,
        status=OrderStatus.CREATED,
        created_at=stamp.at,
    )
    snapshot.orders.append(order)
    append_audit(snapshot, AuditAction.CREATE_ORDER, order.id, buyer_id, stamp)
    return order


# ─── Checkout ────────────────────────────────────────────────────

@dataclass(frozen=True)
class CheckoutPlan:
    """Everything the payment provider needs, computed from one snapshot."""
    key: CorrelationKey
    item_id: str
    seller_id: str
    payer_id: str
    destination_account: str
    amount: int
    fee: int
    description: str
    metadata: dict[str, str] = field(default_factory=dict)


def plan_checkout(
    snapshot: LedgerSnapshot, key: CorrelationKey, fee_bps: int,
) -> CheckoutPlan:
    """Validate a checkout request and price it. Read-only."""
    transaction = _require_transaction(snapshot, key)
    if _is_settled(transaction):
        raise AlreadySettledError(transaction.id, transaction.status.value)
    payment_required = (
        BookingStatus.PAYMENT_REQUIRED if isinstance(transaction, Booking)
        else OrderStatus.PAYMENT_REQUIRED
    )
    if not can_transition(transaction.status, payment_required):
        raise InvalidTransitionError(
            transaction.id, transaction.status.value, payment_required.value,
        )

    item = _require_item(snapshot, transaction.item_id)
    seller = snapshot.find_user(item.owner_id)
    if seller is None or not seller.stripe_account_id:
        raise SellerNotOnboardedError(item.owner_id)

    if isinstance(transaction, Booking):
        quote = quote_rent(
            item, transaction.start_date, transaction.end_date, fee_bps,
        )
        description = f"[Rental] {item.title} ({quote.days} days)"
        payer_id = transaction.borrower_id
    else:
        quote = quote_order(transaction, fee_bps)
        description = f"[Sale] {item.title}"
        payer_id = transaction.buyer_id

    return CheckoutPlan(
        key=key,
        item_id=item.id,
        seller_id=item.owner_id,
        payer_id=payer_id,
        destination_account=seller.stripe_account_id,
        amount=quote.amount,
        fee=quote.fee,
        description=description,
        metadata={**key.to_metadata(), "itemId": item.id},
    )


def mark_payment_required(
    snapshot: LedgerSnapshot, key: CorrelationKey, stamp: Stamp,
) -> Booking | Order:
    """Record that a checkout session was opened for the transaction."""
    transaction = _require_transaction(snapshot, key)
    if _is_settled(transaction):
        raise AlreadySettledError(transaction.id, transaction.status.value)

    if isinstance(transaction, Booking):
        _transition(transaction, BookingStatus.PAYMENT_REQUIRED)
        append_audit(
            snapshot, AuditAction.CHECKOUT_RENT, transaction.id,
            transaction.borrower_id, stamp,
        )
    else:
        _transition(transaction, OrderStatus.PAYMENT_REQUIRED)
        append_audit(
            snapshot, AuditAction.CHECKOUT_SELL, transaction.id,
            transaction.buyer_id, stamp,
        )
    return transaction


# ─── Closing ─────────────────────────────────────────────────────

def complete_transaction(
    snapshot: LedgerSnapshot, key: CorrelationKey, actor: str, stamp: Stamp,
) -> Booking | Order:
    """approved -> completed (rental returned) / paid -> completed (handed over)."""
    transaction = _require_transaction(snapshot, key)
    if isinstance(transaction, Booking):
        _transition(transaction, BookingStatus.COMPLETED)
        action = AuditAction.RENT_COMPLETED
    else:
        _transition(transaction, OrderStatus.COMPLETED)
        action = AuditAction.SELL_COMPLETED
    append_audit(snapshot, action, transaction.id, actor, stamp)
    return transaction


def cancel_transaction(
    snapshot: LedgerSnapshot, key: CorrelationKey, actor: str, stamp: Stamp,
) -> Booking | Order:
    """Cancel an unpaid transaction; releases a booking's dates."""
    transaction = _require_transaction(snapshot, key)
    if isinstance(transaction, Booking):
        _transition(transaction, BookingStatus.CANCELLED)
        action = AuditAction.RENT_CANCELLED
    else:
        _transition(transaction, OrderStatus.CANCELLED)
        action = AuditAction.SELL_CANCELLED
    append_audit(snapshot, action, transaction.id, actor, stamp)
    return transaction
