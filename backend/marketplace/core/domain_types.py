"""Domain Types — enums and status sets shared by every core module.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - BLOCKING_BOOKING_STATUSES is the single source of truth for what reserves dates
    - SETTLED_* sets mark statuses from which checkout must never be re-entered

Design Decisions:
    - str Enums: serialize to JSON without custom encoders (ADR: snapshot is JSON)
    - Frozensets for status groups: membership tests read like the rules they encode
"""

from enum import Enum


class ItemMode(str, Enum):
    """Listing mode — decides which transaction type the item supports."""
    RENT = "rent"
    SELL = "sell"


class TransactionKind(str, Enum):
    """Correlation key discriminator: rent -> booking, sell -> order."""
    RENT = "rent"
    SELL = "sell"


class BookingStatus(str, Enum):
    """Booking lifecycle states."""
    PENDING = "pending"
    PAYMENT_REQUIRED = "payment_required"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderStatus(str, Enum):
    """Order lifecycle states."""
    CREATED = "created"
    PAYMENT_REQUIRED = "payment_required"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AuditAction(str, Enum):
    """Every action string the audit trail records."""
    SIGNUP = "signup"
    LOGIN = "login"
    CONNECT_ACCOUNT_CREATED = "connect_account_created"
    CREATE_ITEM = "create_item"
    REQUEST_BOOKING = "request_booking"
    CHECKOUT_RENT = "checkout_rent"
    RENT_PAID_APPROVED = "rent_paid_approved"
    RENT_COMPLETED = "rent_completed"
    RENT_CANCELLED = "rent_cancelled"
    CREATE_ORDER = "create_order"
    CHECKOUT_SELL = "checkout_sell"
    SELL_PAID_APPROVED = "sell_paid_approved"
    SELL_COMPLETED = "sell_completed"
    SELL_CANCELLED = "sell_cancelled"
    RATE = "rate"


# ─── Status groups ───────────────────────────────────────────────

BLOCKING_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.PAYMENT_REQUIRED,
    BookingStatus.APPROVED,
})

SETTLED_BOOKING_STATUSES = frozenset({
    BookingStatus.APPROVED, BookingStatus.COMPLETED,
})
SETTLED_ORDER_STATUSES = frozenset({
    OrderStatus.PAID, OrderStatus.COMPLETED,
})

# Statuses a payment-completion event may advance from
PRE_SETTLEMENT_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING, BookingStatus.PAYMENT_REQUIRED,
})
PRE_SETTLEMENT_ORDER_STATUSES = frozenset({
    OrderStatus.CREATED, OrderStatus.PAYMENT_REQUIRED,
})


# ─── Defaults ────────────────────────────────────────────────────

DEFAULT_USER_SCORE: float = 4.0
DEFAULT_USER_ROLE: str = "user"
SYSTEM_ACTOR: str = "system"
PAYMENT_ACTOR: str = "stripe"
