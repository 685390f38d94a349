"""Trust Score — reputation blend of average rating and completed transactions.

Invariants:
    - Pure function of its inputs, no side effects
    - completed = completed bookings + paid orders where the user is either party
    - score = round_half_up((rating / 5) * 70 + min(completed, 20) + 10), in ~[10, 100]
"""

import math
from collections.abc import Iterable

from marketplace.core.domain_types import BookingStatus, OrderStatus
from marketplace.core.ledger_types import Booking, Order, User


RATING_WEIGHT: int = 70
COMPLETION_CAP: int = 20
BASELINE: int = 10


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def completed_count(
    user_id: str, bookings: Iterable[Booking], orders: Iterable[Order],
) -> int:
    rentals = sum(
        1 for b in bookings
        if b.status == BookingStatus.COMPLETED
        and user_id in (b.borrower_id, b.owner_id)
    )
    sales = sum(
        1 for o in orders
        if o.status == OrderStatus.PAID
        and user_id in (o.buyer_id, o.seller_id)
    )
    return rentals + sales


def trust_score(
    user: User, bookings: Iterable[Booking], orders: Iterable[Order],
) -> int:
    rating = user.score or 0
    completed = completed_count(user.id, bookings, orders)
    component = (rating / 5) * RATING_WEIGHT + min(completed, COMPLETION_CAP) + BASELINE
    return int(round_half_up(component))
