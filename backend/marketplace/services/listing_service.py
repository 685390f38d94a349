"""Listing Service — item creation plus the read-only catalogue and admin views."""

from collections.abc import Callable

from marketplace.core.audit_trail import recent_audit
from marketplace.core.domain_types import ItemMode
from marketplace.core.ledger_types import AuditEntry, Booking, Item, Order, Stamp
from marketplace.core.listings import create_item, search_items
from marketplace.services.ledger import Ledger


ADMIN_PAGE_SIZE: int = 100


class ListingService:

    def __init__(self, ledger: Ledger, clock: Callable[[], Stamp] = Stamp.now):
        self._ledger = ledger
        self._clock = clock

    async def create_item(
        self,
        *,
        owner_id: str,
        mode: ItemMode,
        title: str,
        city: str = "",
        desc: str = "",
        price_per_day: int | None = None,
        deposit: int | None = None,
        price_sell: int | None = None,
    ) -> Item:
        stamp = self._clock()
        return await self._ledger.mutate(
            lambda snap: create_item(
                snap, owner_id=owner_id, mode=mode, title=title, city=city,
                desc=desc, price_per_day=price_per_day, deposit=deposit,
                price_sell=price_sell, stamp=stamp,
            ),
        )

    async def list_items(self) -> list[Item]:
        return (await self._ledger.read()).items

    async def search(self, query: str) -> list[Item]:
        return search_items(await self._ledger.read(), query)

    async def recent_audit(self) -> list[AuditEntry]:
        return recent_audit(await self._ledger.read())

    async def recent_bookings(self) -> list[Booking]:
        """Newest first."""
        return list(reversed((await self._ledger.read()).bookings[-ADMIN_PAGE_SIZE:]))

    async def recent_orders(self) -> list[Order]:
        """Newest first."""
        return list(reversed((await self._ledger.read()).orders[-ADMIN_PAGE_SIZE:]))
