"""Availability Checker — boundary-inclusive overlap against date-holding bookings.

Tests:
    - Overlap on a shared boundary day counts as a conflict
    - completed/cancelled bookings never block
    - Bookings on other items are ignored
"""

from datetime import date, datetime, timezone

import pytest

from marketplace.core.availability import has_conflict, ranges_overlap
from marketplace.core.domain_types import BookingStatus
from marketplace.core.ledger_types import Booking


def _booking(status, start="2024-01-01", end="2024-01-05", item_id="itemX"):
    return Booking(
        id="b1", item_id=item_id, owner_id="o", borrower_id="r",
        start_date=date.fromisoformat(start), end_date=date.fromisoformat(end),
        status=status, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_ranges_overlap_is_inclusive():
    assert ranges_overlap(date(2024, 1, 1), date(2024, 1, 5), date(2024, 1, 5), date(2024, 1, 7))
    assert not ranges_overlap(date(2024, 1, 1), date(2024, 1, 5), date(2024, 1, 6), date(2024, 1, 7))


def test_overlapping_request_conflicts_with_approved_booking():
    bookings = [_booking(BookingStatus.APPROVED)]
    assert has_conflict("itemX", date(2024, 1, 4), date(2024, 1, 6), bookings)


def test_request_starting_on_existing_end_day_conflicts():
    bookings = [_booking(BookingStatus.APPROVED)]
    assert has_conflict("itemX", date(2024, 1, 5), date(2024, 1, 7), bookings)


def test_request_after_existing_booking_is_free():
    bookings = [_booking(BookingStatus.APPROVED)]
    assert not has_conflict("itemX", date(2024, 1, 6), date(2024, 1, 8), bookings)


@pytest.mark.parametrize("status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
def test_terminal_bookings_never_block(status):
    bookings = [_booking(status)]
    assert not has_conflict("itemX", date(2024, 1, 2), date(2024, 1, 3), bookings)


@pytest.mark.parametrize(
    "status", [BookingStatus.PENDING, BookingStatus.PAYMENT_REQUIRED],
)
def test_unpaid_bookings_hold_dates(status):
    bookings = [_booking(status)]
    assert has_conflict("itemX", date(2024, 1, 2), date(2024, 1, 3), bookings)


def test_other_items_are_ignored():
    bookings = [_booking(BookingStatus.APPROVED, item_id="itemY")]
    assert not has_conflict("itemX", date(2024, 1, 2), date(2024, 1, 3), bookings)


def test_no_bookings_means_no_conflict():
    assert not has_conflict("itemX", date(2024, 1, 2), date(2024, 1, 3), [])
