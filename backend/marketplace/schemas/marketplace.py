"""Marketplace Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - ItemCreate cross-validates price fields per mode (rent: price_per_day, sell: price_sell)
    - Money fields are non-negative integers (minor units)
    - Booking date order and rating stars are NOT checked here: the core owns those
      rules and reports them as InvalidDateRangeError / InvalidStarsError
    - Responses are built from core records via from_domain()
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from marketplace.core.ledger_types import (
    AuditEntry, Booking, Item, Order, RentListing, User,
)


# --- Users --------------------------------------------------------------------

class LoginRequest(BaseModel):
    name: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=30)

    @field_validator("name", "phone")
    @classmethod
    def strip_blank(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class UserResponse(BaseModel):
    id: str
    name: str
    phone: str
    score: float
    reviews: int
    role: str
    stripe_account_id: str

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id, name=user.name, phone=user.phone, score=user.score,
            reviews=user.reviews, role=user.role,
            stripe_account_id=user.stripe_account_id,
        )


class LoginResponse(BaseModel):
    ok: bool = True
    user: UserResponse
    trust: int


class ConnectLinkRequest(BaseModel):
    user_id: str = Field(min_length=1)


class ConnectLinkResponse(BaseModel):
    url: str


class ConnectStatusResponse(BaseModel):
    connected: bool
    account_id: str | None = None


# --- Items --------------------------------------------------------------------

class ItemCreate(BaseModel):
    """Listing creation — price fields must match the mode."""
    owner_id: str = Field(min_length=1)
    mode: Literal["rent", "sell"]
    title: str = Field(min_length=1, max_length=200)
    city: str = Field("", max_length=100)
    desc: str = Field("", max_length=5000)
    price_per_day: int | None = Field(None, ge=0)
    deposit: int | None = Field(None, ge=0)
    price_sell: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def validate_mode_fields(self):
        if self.mode == "rent":
            if self.price_per_day is None:
                raise ValueError("rent listing requires price_per_day")
            if self.price_sell is not None:
                raise ValueError("rent listing cannot have price_sell")
        else:
            if self.price_sell is None:
                raise ValueError("sell listing requires price_sell")
            if self.price_per_day is not None or self.deposit is not None:
                raise ValueError("sell listing cannot have price_per_day or deposit")
        return self


class ItemResponse(BaseModel):
    id: str
    owner_id: str
    mode: Literal["rent", "sell"]
    title: str
    city: str
    desc: str
    available: bool
    price_per_day: int | None = None
    deposit: int | None = None
    price_sell: int | None = None

    @classmethod
    def from_domain(cls, item: Item) -> "ItemResponse":
        common = dict(
            id=item.id, owner_id=item.owner_id, mode=item.mode.value,
            title=item.title, city=item.city, desc=item.desc,
            available=item.available,
        )
        if isinstance(item, RentListing):
            return cls(**common, price_per_day=item.price_per_day, deposit=item.deposit)
        return cls(**common, price_sell=item.price_sell)


# --- Bookings & orders --------------------------------------------------------

class BookingCreate(BaseModel):
    item_id: str = Field(min_length=1)
    borrower_id: str = Field(min_length=1)
    start_date: date
    end_date: date


class BookingResponse(BaseModel):
    id: str
    item_id: str
    owner_id: str
    borrower_id: str
    start_date: date
    end_date: date
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id, item_id=booking.item_id, owner_id=booking.owner_id,
            borrower_id=booking.borrower_id, start_date=booking.start_date,
            end_date=booking.end_date, status=booking.status.value,
            created_at=booking.created_at,
        )


class OrderCreate(BaseModel):
    item_id: str = Field(min_length=1)
    buyer_id: str = Field(min_length=1)


class OrderResponse(BaseModel):
    id: str
    item_id: str
    buyer_id: str
    seller_id: str
    price: int | None
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id, item_id=order.item_id, buyer_id=order.buyer_id,
            seller_id=order.seller_id, price=order.price,
            status=order.status.value, created_at=order.created_at,
        )


class TransitionRequest(BaseModel):
    """Complete/cancel — who asked, for the audit trail."""
    actor_id: str = Field(min_length=1)


# --- Checkout -----------------------------------------------------------------

class CheckoutCreate(BaseModel):
    type: Literal["rent", "sell"]
    id: str = Field(min_length=1)


class CheckoutResponse(BaseModel):
    url: str
    amount: int
    fee: int
    description: str


# --- Ratings ------------------------------------------------------------------

class RatingCreate(BaseModel):
    target_user_id: str = Field(min_length=1)
    by_user_id: str = Field(min_length=1)
    stars: int
    comment: str = Field("", max_length=2000)


class RatingResponse(BaseModel):
    ok: bool = True
    score: float
    reviews: int
    trust: int


# --- Admin --------------------------------------------------------------------

class AuditEntryResponse(BaseModel):
    id: str
    action: str
    detail: str
    by: str
    at: datetime

    @classmethod
    def from_domain(cls, entry: AuditEntry) -> "AuditEntryResponse":
        return cls(
            id=entry.id, action=entry.action, detail=entry.detail,
            by=entry.by, at=entry.at,
        )
