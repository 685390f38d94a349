"""Ledger Snapshot — serialization / deserialization of the whole ledger document.

Invariants:
    - to_document produces a JSON-safe dict (no dates, no Enums, no dataclasses)
    - from_document reconstructs a LedgerSnapshot from any valid document dict
    - Listings are tagged by "mode" and rebuilt as RentListing / SaleListing
    - Missing collections and optional keys fall back to defaults (forward-compatible)
    - version is NOT part of the body: the store owns it alongside the document
"""

from datetime import date, datetime

from marketplace.core.domain_types import (
    BookingStatus, ItemMode, OrderStatus, DEFAULT_USER_ROLE, DEFAULT_USER_SCORE,
)
from marketplace.core.ledger_types import (
    AuditEntry, Booking, Item, LedgerSnapshot, Order, Rating, RentListing,
    SaleListing, User,
)


def to_document(snapshot: LedgerSnapshot) -> dict:
    """Serialize a snapshot to a JSON-safe dict."""
    return {
        "users": [_user_to_dict(u) for u in snapshot.users],
        "items": [_item_to_dict(i) for i in snapshot.items],
        "bookings": [_booking_to_dict(b) for b in snapshot.bookings],
        "orders": [_order_to_dict(o) for o in snapshot.orders],
        "ratings": [_rating_to_dict(r) for r in snapshot.ratings],
        "audit": [_audit_to_dict(a) for a in snapshot.audit],
    }


def from_document(document: dict | None, version: int = 0) -> LedgerSnapshot:
    """Rebuild a snapshot from a stored document dict."""
    doc = document or {}
    return LedgerSnapshot(
        version=version,
        users=[_user_from_dict(d) for d in doc.get("users", [])],
        items=[item_from_dict(d) for d in doc.get("items", [])],
        bookings=[_booking_from_dict(d) for d in doc.get("bookings", [])],
        orders=[_order_from_dict(d) for d in doc.get("orders", [])],
        ratings=[_rating_from_dict(d) for d in doc.get("ratings", [])],
        audit=[_audit_from_dict(d) for d in doc.get("audit", [])],
    )


# ─── Listings ────────────────────────────────────────────────────

def _item_to_dict(item: Item) -> dict:
    base = {
        "id": item.id,
        "mode": item.mode.value,
        "owner_id": item.owner_id,
        "title": item.title,
        "city": item.city,
        "desc": item.desc,
        "available": item.available,
    }
    if isinstance(item, RentListing):
        base["price_per_day"] = item.price_per_day
        base["deposit"] = item.deposit
    else:
        base["price_sell"] = item.price_sell
    return base


def item_from_dict(d: dict) -> Item:
    """Build the listing variant named by d["mode"]."""
    common = {
        "id": d["id"],
        "owner_id": d["owner_id"],
        "title": d.get("title", ""),
        "city": d.get("city", ""),
        "desc": d.get("desc", ""),
        "available": d.get("available", True),
    }
    if ItemMode(d["mode"]) == ItemMode.RENT:
        return RentListing(
            **common,
            price_per_day=d.get("price_per_day"),
            deposit=d.get("deposit"),
        )
    return SaleListing(**common, price_sell=d.get("price_sell"))


# ─── Users & ratings ─────────────────────────────────────────────

def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id, "name": user.name, "phone": user.phone,
        "score": user.score, "reviews": user.reviews, "role": user.role,
        "stripe_account_id": user.stripe_account_id,
    }


def _user_from_dict(d: dict) -> User:
    return User(
        id=d["id"],
        name=d.get("name", ""),
        phone=d.get("phone", ""),
        score=d.get("score", DEFAULT_USER_SCORE),
        reviews=d.get("reviews", 0),
        role=d.get("role", DEFAULT_USER_ROLE),
        stripe_account_id=d.get("stripe_account_id", ""),
    )


def _rating_to_dict(r: Rating) -> dict:
    return {
        "id": r.id, "target_user_id": r.target_user_id,
        "by_user_id": r.by_user_id, "stars": r.stars,
        "comment": r.comment, "at": r.at.isoformat(),
    }


def _rating_from_dict(d: dict) -> Rating:
    return Rating(
        id=d["id"],
        target_user_id=d["target_user_id"],
        by_user_id=d["by_user_id"],
        stars=d["stars"],
        comment=d.get("comment", ""),
        at=datetime.fromisoformat(d["at"]),
    )


# ─── Transactions ────────────────────────────────────────────────

def _booking_to_dict(b: Booking) -> dict:
    return {
        "id": b.id, "item_id": b.item_id, "owner_id": b.owner_id,
        "borrower_id": b.borrower_id,
        "start_date": b.start_date.isoformat(),
        "end_date": b.end_date.isoformat(),
        "status": b.status.value,
        "created_at": b.created_at.isoformat(),
    }


def _booking_from_dict(d: dict) -> Booking:
    return Booking(
        id=d["id"],
        item_id=d["item_id"],
        owner_id=d["owner_id"],
        borrower_id=d["borrower_id"],
        start_date=date.fromisoformat(d["start_date"]),
        end_date=date.fromisoformat(d["end_date"]),
        status=BookingStatus(d["status"]),
        created_at=datetime.fromisoformat(d["created_at"]),
    )


def _order_to_dict(o: Order) -> dict:
    return {
        "id": o.id, "item_id": o.item_id, "buyer_id": o.buyer_id,
        "seller_id": o.seller_id, "price": o.price,
        "status": o.status.value,
        "created_at": o.created_at.isoformat(),
    }


def _order_from_dict(d: dict) -> Order:
    return Order(
        id=d["id"],
        item_id=d["item_id"],
        buyer_id=d["buyer_id"],
        seller_id=d["seller_id"],
        price=d.get("price"),
        status=OrderStatus(d["status"]),
        created_at=datetime.fromisoformat(d["created_at"]),
    )


# ─── Audit ───────────────────────────────────────────────────────

def _audit_to_dict(a: AuditEntry) -> dict:
    return {
        "id": a.id, "action": a.action, "detail": a.detail,
        "by": a.by, "at": a.at.isoformat(),
    }


def _audit_from_dict(d: dict) -> AuditEntry:
    return AuditEntry(
        id=d["id"],
        action=d["action"],
        detail=d.get("detail", ""),
        by=d.get("by", "system"),
        at=datetime.fromisoformat(d["at"]),
    )
