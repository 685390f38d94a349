"""Availability Checker — decides whether a rental range collides with held dates.

Invariants:
    - has_conflict is PURE: reads the bookings it is given, mutates nothing
    - Overlap is boundary-inclusive: a booking ending on day D blocks one starting on D
    - Only BLOCKING_BOOKING_STATUSES reserve dates; completed/cancelled never block

Design Decisions:
    - Calendar dates only, no timezone arithmetic (ADR: whole-day reservations)
    - Callers must run has_conflict inside the same write section as the insert,
      otherwise two requests can both pass against a stale snapshot
"""

from collections.abc import Iterable
from datetime import date

from marketplace.core.domain_types import BLOCKING_BOOKING_STATUSES
from marketplace.core.ledger_types import Booking


def ranges_overlap(
    a_start: date, a_end: date, b_start: date, b_end: date,
) -> bool:
    """Inclusive overlap test for two calendar ranges."""
    return a_start <= b_end and b_start <= a_end


def has_conflict(
    item_id: str, start: date, end: date, bookings: Iterable[Booking],
) -> bool:
    """True if [start, end] overlaps any date-holding booking of item_id."""
    return any(
        ranges_overlap(b.start_date, b.end_date, start, end)
        for b in bookings
        if b.item_id == item_id and b.status in BLOCKING_BOOKING_STATUSES
    )
