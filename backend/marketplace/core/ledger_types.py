"""Ledger Types — explicit records for every entity held in the ledger document.

Invariants:
    - A listing is either RentListing or SaleListing; mode is derived from the class
    - RentListing carries price_per_day/deposit only, SaleListing carries price_sell only
    - Money fields are integers in minor currency units
    - LedgerSnapshot.version is the compare-and-swap token of the whole document

Design Decisions:
    - Variant classes over one struct with optional fields (ADR: mode-dependent
      fields cannot leak across modes)
    - Price fields stay Optional: legacy documents may lack them, and pricing
      reports InvalidPricingError instead of failing at load time
    - Stamp carries clock + id source so core mutations stay deterministic under test
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from marketplace.core.domain_types import (
    BookingStatus, ItemMode, OrderStatus, DEFAULT_USER_ROLE, DEFAULT_USER_SCORE,
)


def _random_id(length: int) -> str:
    return uuid.uuid4().hex[:length]


@dataclass(frozen=True)
class Stamp:
    """Clock reading and id source handed to core mutations by the shell."""
    at: datetime
    new_id: Callable[[int], str] = _random_id

    @classmethod
    def now(cls) -> "Stamp":
        return cls(at=datetime.now(timezone.utc))


# ─── Listings ────────────────────────────────────────────────────

@dataclass
class RentListing:
    id: str
    owner_id: str
    title: str
    city: str = ""
    desc: str = ""
    price_per_day: int | None = None
    deposit: int | None = None
    available: bool = True

    @property
    def mode(self) -> ItemMode:
        return ItemMode.RENT


@dataclass
class SaleListing:
    id: str
    owner_id: str
    title: str
    city: str = ""
    desc: str = ""
    price_sell: int | None = None
    available: bool = True

    @property
    def mode(self) -> ItemMode:
        return ItemMode.SELL


Item = RentListing | SaleListing


# ─── Parties & transactions ──────────────────────────────────────

@dataclass
class User:
    id: str
    name: str
    phone: str = ""
    score: float = DEFAULT_USER_SCORE
    reviews: int = 0
    role: str = DEFAULT_USER_ROLE
    stripe_account_id: str = ""


@dataclass
class Booking:
    id: str
    item_id: str
    owner_id: str
    borrower_id: str
    start_date: date
    end_date: date
    status: BookingStatus
    created_at: datetime


@dataclass
class Order:
    id: str
    item_id: str
    buyer_id: str
    seller_id: str
    price: int | None
    status: OrderStatus
    created_at: datetime


@dataclass
class Rating:
    id: str
    target_user_id: str
    by_user_id: str
    stars: int
    comment: str
    at: datetime


@dataclass
class AuditEntry:
    id: str
    action: str
    detail: str
    by: str
    at: datetime


# ─── Whole document ──────────────────────────────────────────────

@dataclass
class LedgerSnapshot:
    """The entire ledger document as read from (and written back to) the store."""
    version: int = 0
    users: list[User] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)
    bookings: list[Booking] = field(default_factory=list)
    orders: list[Order] = field(default_factory=list)
    ratings: list[Rating] = field(default_factory=list)
    audit: list[AuditEntry] = field(default_factory=list)

    def find_user(self, user_id: str) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    def find_item(self, item_id: str) -> Item | None:
        return next((i for i in self.items if i.id == item_id), None)

    def find_booking(self, booking_id: str) -> Booking | None:
        return next((b for b in self.bookings if b.id == booking_id), None)

    def find_order(self, order_id: str) -> Order | None:
        return next((o for o in self.orders if o.id == order_id), None)
