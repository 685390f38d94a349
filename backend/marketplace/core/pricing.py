"""Pricing Engine — rental/sale totals and the platform-fee split.

Invariants:
    - All amounts are integers in minor currency units (no float accumulation)
    - fee = floor(amount * fee_bps / 10000), exactly
    - Rental day count = ceil(span / 1 day), never below 1
    - deposit defaults to 0; a missing daily or sale price is InvalidPricingError
    - Order quotes use the price frozen on the order, never the current listing

Design Decisions:
    - Quote as frozen dataclass: checkout plan and API response read the same numbers
"""

from dataclasses import dataclass
from datetime import date

from marketplace.core.domain_types import ItemMode
from marketplace.core.errors import InvalidModeError, InvalidPricingError
from marketplace.core.ledger_types import Item, Order, RentListing, SaleListing


BPS_DENOMINATOR: int = 10_000


@dataclass(frozen=True)
class Quote:
    """Amount charged to the payer and the platform's share of it."""
    amount: int
    fee: int
    days: int = 0
    rent_total: int = 0

    @property
    def transfer_amount(self) -> int:
        """What reaches the seller's destination account."""
        return self.amount - self.fee


def rental_days(start: date, end: date) -> int:
    """Whole days between start and end, rounded up, minimum 1."""
    return max(1, (end - start).days)


def platform_fee(amount: int, fee_bps: int) -> int:
    return amount * fee_bps // BPS_DENOMINATOR


def quote_rent(item: Item, start: date, end: date, fee_bps: int) -> Quote:
    """Price a rental of item over [start, end)."""
    if not isinstance(item, RentListing):
        raise InvalidModeError(item.id, ItemMode.RENT.value)
    if item.price_per_day is None:
        raise InvalidPricingError(item.id, "price_per_day")
    days = rental_days(start, end)
    rent_total = item.price_per_day * days
    amount = rent_total + (item.deposit or 0)
    return Quote(
        amount=amount, fee=platform_fee(amount, fee_bps),
        days=days, rent_total=rent_total,
    )


def quote_sell(item: Item, fee_bps: int) -> Quote:
    """Price a sale of item at its current listing price."""
    if not isinstance(item, SaleListing):
        raise InvalidModeError(item.id, ItemMode.SELL.value)
    if item.price_sell is None:
        raise InvalidPricingError(item.id, "price_sell")
    return Quote(amount=item.price_sell, fee=platform_fee(item.price_sell, fee_bps))


def quote_order(order: Order, fee_bps: int) -> Quote:
    """Price an order at the price captured when it was created."""
    if order.price is None:
        raise InvalidPricingError(order.item_id, "price_sell")
    return Quote(amount=order.price, fee=platform_fee(order.price, fee_bps))
