"""Booking/Order State Machine — creation, checkout planning and lifecycle moves.

Tests:
    - create_booking checks run in order: item, mode, dates, conflict
    - plan_checkout prices the transaction and never mutates the snapshot
    - Settled transactions cannot be checked out again
    - Every successful mutation appends exactly one audit entry
"""

from datetime import date

import pytest

from marketplace.core.domain_types import (
    AuditAction, BookingStatus, OrderStatus, TransactionKind,
)
from marketplace.core.errors import (
    AlreadySettledError, BookingConflictError, InvalidDateRangeError,
    InvalidModeError, InvalidTransitionError, ResourceNotFoundError,
    SellerNotOnboardedError,
)
from marketplace.core.ledger_snapshot import to_document
from marketplace.core.settlement import CorrelationKey
from marketplace.core.transitions import (
    can_transition, cancel_transaction, complete_transaction, create_booking,
    create_order, mark_payment_required, plan_checkout,
)


def _book(snapshot, ids, stamp, start="2024-01-01", end="2024-01-03"):
    return create_booking(
        snapshot, ids["rent_item"], ids["renter"],
        date.fromisoformat(start), date.fromisoformat(end), stamp,
    )


# ─── Creation ────────────────────────────────────────────────────

def test_create_booking_starts_pending(market, stamp):
    snapshot, ids = market
    booking = _book(snapshot, ids, stamp)
    assert booking.status == BookingStatus.PENDING
    assert booking.owner_id == ids["owner"]
    assert snapshot.audit[-1].action == AuditAction.REQUEST_BOOKING.value
    assert snapshot.audit[-1].by == ids["renter"]


def test_create_booking_unknown_item(market, stamp):
    snapshot, ids = market
    with pytest.raises(ResourceNotFoundError):
        create_booking(snapshot, "nope", ids["renter"], date(2024, 1, 1), date(2024, 1, 2), stamp)


def test_create_booking_on_sell_item(market, stamp):
    snapshot, ids = market
    with pytest.raises(InvalidModeError):
        create_booking(
            snapshot, ids["sell_item"], ids["renter"],
            date(2024, 1, 1), date(2024, 1, 2), stamp,
        )


@pytest.mark.parametrize("start, end", [("2024-01-03", "2024-01-03"), ("2024-01-05", "2024-01-03")])
def test_create_booking_rejects_non_increasing_dates(market, stamp, start, end):
    snapshot, ids = market
    with pytest.raises(InvalidDateRangeError):
        _book(snapshot, ids, stamp, start, end)


def test_mode_is_checked_before_dates(market, stamp):
    snapshot, ids = market
    with pytest.raises(InvalidModeError):
        create_booking(
            snapshot, ids["sell_item"], ids["renter"],
            date(2024, 1, 5), date(2024, 1, 1), stamp,
        )


def test_overlapping_booking_conflicts(market, stamp):
    snapshot, ids = market
    _book(snapshot, ids, stamp, "2024-01-01", "2024-01-05")
    audit_before = len(snapshot.audit)
    with pytest.raises(BookingConflictError):
        _book(snapshot, ids, stamp, "2024-01-05", "2024-01-07")
    assert len(snapshot.bookings) == 1
    assert len(snapshot.audit) == audit_before


def test_cancelled_booking_releases_dates(market, stamp):
    snapshot, ids = market
    first = _book(snapshot, ids, stamp, "2024-01-01", "2024-01-05")
    cancel_transaction(
        snapshot, CorrelationKey(TransactionKind.RENT, first.id), ids["renter"], stamp,
    )
    second = _book(snapshot, ids, stamp, "2024-01-02", "2024-01-04")
    assert second.status == BookingStatus.PENDING


def test_create_order_freezes_price(market, stamp):
    snapshot, ids = market
    order = create_order(snapshot, ids["sell_item"], ids["renter"], stamp)
    assert order.status == OrderStatus.CREATED
    assert order.price == 30000
    assert order.seller_id == ids["owner"]

    snapshot.find_item(ids["sell_item"]).price_sell = 99999
    plan = plan_checkout(snapshot, CorrelationKey(TransactionKind.SELL, order.id), 1000)
    assert plan.amount == 30000


def test_create_order_on_rent_item(market, stamp):
    snapshot, ids = market
    with pytest.raises(InvalidModeError):
        create_order(snapshot, ids["rent_item"], ids["renter"], stamp)


# ─── Checkout ────────────────────────────────────────────────────

def test_plan_checkout_for_booking(market, stamp):
    snapshot, ids = market
    booking = _book(snapshot, ids, stamp)
    key = CorrelationKey(TransactionKind.RENT, booking.id)
    before = to_document(snapshot)

    plan = plan_checkout(snapshot, key, 1000)

    assert plan.amount == 2500
    assert plan.fee == 250
    assert plan.destination_account == "acct_owner"
    assert plan.description == "[Rental] Camping Tent (2 days)"
    assert plan.metadata == {
        "type": "rent", "bookingId": booking.id, "itemId": ids["rent_item"],
    }
    assert to_document(snapshot) == before


def test_plan_checkout_for_order(market, stamp):
    snapshot, ids = market
    order = create_order(snapshot, ids["sell_item"], ids["renter"], stamp)
    plan = plan_checkout(snapshot, CorrelationKey(TransactionKind.SELL, order.id), 1000)
    assert plan.description == "[Sale] Road Bike"
    assert plan.metadata["orderId"] == order.id
    assert plan.payer_id == ids["renter"]


def test_plan_checkout_requires_onboarded_seller(market, stamp):
    snapshot, ids = market
    booking = create_booking(
        snapshot, ids["newbie_item"], ids["renter"],
        date(2024, 1, 1), date(2024, 1, 2), stamp,
    )
    with pytest.raises(SellerNotOnboardedError):
        plan_checkout(snapshot, CorrelationKey(TransactionKind.RENT, booking.id), 1000)
    assert booking.status == BookingStatus.PENDING


def test_plan_checkout_unknown_transaction(market):
    snapshot, _ = market
    with pytest.raises(ResourceNotFoundError):
        plan_checkout(snapshot, CorrelationKey(TransactionKind.SELL, "missing"), 1000)


@pytest.mark.parametrize("status", [BookingStatus.APPROVED, BookingStatus.COMPLETED])
def test_settled_booking_cannot_be_checked_out(market, stamp, status):
    snapshot, ids = market
    booking = _book(snapshot, ids, stamp)
    booking.status = status
    with pytest.raises(AlreadySettledError):
        plan_checkout(snapshot, CorrelationKey(TransactionKind.RENT, booking.id), 1000)


def test_cancelled_order_cannot_be_checked_out(market, stamp):
    snapshot, ids = market
    order = create_order(snapshot, ids["sell_item"], ids["renter"], stamp)
    order.status = OrderStatus.CANCELLED
    with pytest.raises(InvalidTransitionError):
        plan_checkout(snapshot, CorrelationKey(TransactionKind.SELL, order.id), 1000)


def test_mark_payment_required_is_repeatable(market, stamp):
    snapshot, ids = market
    booking = _book(snapshot, ids, stamp)
    key = CorrelationKey(TransactionKind.RENT, booking.id)
    mark_payment_required(snapshot, key, stamp)
    mark_payment_required(snapshot, key, stamp)
    assert booking.status == BookingStatus.PAYMENT_REQUIRED
    assert snapshot.audit[-1].action == AuditAction.CHECKOUT_RENT.value


def test_mark_payment_required_after_settlement_fails(market, stamp):
    snapshot, ids = market
    order = create_order(snapshot, ids["sell_item"], ids["renter"], stamp)
    order.status = OrderStatus.PAID
    with pytest.raises(AlreadySettledError):
        mark_payment_required(snapshot, CorrelationKey(TransactionKind.SELL, order.id), stamp)


# ─── Closing ─────────────────────────────────────────────────────

def test_complete_requires_settlement(market, stamp):
    snapshot, ids = market
    booking = _book(snapshot, ids, stamp)
    key = CorrelationKey(TransactionKind.RENT, booking.id)
    with pytest.raises(InvalidTransitionError):
        complete_transaction(snapshot, key, ids["owner"], stamp)

    booking.status = BookingStatus.APPROVED
    complete_transaction(snapshot, key, ids["owner"], stamp)
    assert booking.status == BookingStatus.COMPLETED
    assert snapshot.audit[-1].action == AuditAction.RENT_COMPLETED.value


def test_paid_order_cannot_be_cancelled(market, stamp):
    snapshot, ids = market
    order = create_order(snapshot, ids["sell_item"], ids["renter"], stamp)
    order.status = OrderStatus.PAID
    with pytest.raises(InvalidTransitionError):
        cancel_transaction(
            snapshot, CorrelationKey(TransactionKind.SELL, order.id), ids["renter"], stamp,
        )


def test_transition_tables():
    assert can_transition(BookingStatus.PENDING, BookingStatus.PAYMENT_REQUIRED)
    assert can_transition(BookingStatus.PAYMENT_REQUIRED, BookingStatus.APPROVED)
    assert not can_transition(BookingStatus.COMPLETED, BookingStatus.CANCELLED)
    assert not can_transition(BookingStatus.APPROVED, BookingStatus.CANCELLED)
    assert can_transition(OrderStatus.PAID, OrderStatus.COMPLETED)
    assert not can_transition(OrderStatus.CANCELLED, OrderStatus.PAID)
