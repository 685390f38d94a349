"""Listings — item creation and catalogue search.

Invariants:
    - A listing's variant (and so its mode) is fixed at creation
    - Only `available` may change after creation
    - search_items matches title, city and desc case-insensitively
"""

from marketplace.core.audit_trail import append_audit
from marketplace.core.domain_types import AuditAction, ItemMode
from marketplace.core.ledger_types import (
    Item, LedgerSnapshot, RentListing, SaleListing, Stamp,
)


SEARCH_LIMIT: int = 100


def create_item(
    snapshot: LedgerSnapshot,
    *,
    owner_id: str,
    mode: ItemMode,
    title: str,
    city: str = "",
    desc: str = "",
    price_per_day: int | None = None,
    deposit: int | None = None,
    price_sell: int | None = None,
    stamp: Stamp,
) -> Item:
    item_id = stamp.new_id(6)
    item: Item
    if mode == ItemMode.RENT:
        item = RentListing(
            id=item_id, owner_id=owner_id, title=title, city=city, desc=desc,
            price_per_day=price_per_day, deposit=deposit,
        )
    else:
        item = SaleListing(
            id=item_id, owner_id=owner_id, title=title, city=city, desc=desc,
            price_sell=price_sell,
        )
    snapshot.items.append(item)
    append_audit(
        snapshot, AuditAction.CREATE_ITEM, f"{item.id}:{mode.value}", owner_id, stamp,
    )
    return item


def search_items(
    snapshot: LedgerSnapshot, query: str, limit: int = SEARCH_LIMIT,
) -> list[Item]:
    q = (query or "").lower()
    matches = [
        i for i in snapshot.items
        if q in (i.title or "").lower()
        or q in (i.city or "").lower()
        or q in (i.desc or "").lower()
    ]
    return matches[:limit]
