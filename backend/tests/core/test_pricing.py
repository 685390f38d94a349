"""Pricing Engine — rental/sale totals and floor-rounded platform fee."""

from datetime import date, datetime, timezone

import pytest

from marketplace.core.domain_types import OrderStatus
from marketplace.core.errors import InvalidModeError, InvalidPricingError
from marketplace.core.ledger_types import Order, RentListing, SaleListing
from marketplace.core.pricing import (
    platform_fee, quote_order, quote_rent, quote_sell, rental_days,
)


TENT = RentListing(id="t1", owner_id="o", title="Tent", price_per_day=1000, deposit=500)
BIKE = SaleListing(id="b1", owner_id="o", title="Bike", price_sell=30000)


def test_two_day_rental_with_deposit():
    quote = quote_rent(TENT, date(2024, 1, 1), date(2024, 1, 3), 1000)
    assert quote.days == 2
    assert quote.rent_total == 2000
    assert quote.amount == 2500
    assert quote.fee == 250
    assert quote.transfer_amount == 2250


def test_same_day_rental_counts_one_day():
    assert rental_days(date(2024, 1, 1), date(2024, 1, 1)) == 1
    assert rental_days(date(2024, 1, 3), date(2024, 1, 1)) == 1


def test_missing_deposit_defaults_to_zero():
    item = RentListing(id="t2", owner_id="o", title="Stove", price_per_day=700)
    quote = quote_rent(item, date(2024, 1, 1), date(2024, 1, 4), 1000)
    assert quote.amount == 2100
    assert quote.fee == 210


def test_fee_is_floored():
    assert platform_fee(999, 1000) == 99
    assert platform_fee(1, 9999) == 0


@pytest.mark.parametrize("bps, expected", [(0, 0), (10_000, 30000), (250, 750)])
def test_sale_fee_bounds(bps, expected):
    quote = quote_sell(BIKE, bps)
    assert quote.amount == 30000
    assert quote.fee == expected


@pytest.mark.parametrize("bps, expected", [(0, 0), (10_000, 2500)])
def test_rent_fee_bounds(bps, expected):
    quote = quote_rent(TENT, date(2024, 1, 1), date(2024, 1, 3), bps)
    assert quote.amount == 2500
    assert quote.fee == expected
    assert quote.transfer_amount == 2500 - expected


def test_same_inputs_give_the_same_quote():
    first = quote_rent(TENT, date(2024, 1, 1), date(2024, 1, 3), 1000)
    second = quote_rent(TENT, date(2024, 1, 1), date(2024, 1, 3), 1000)
    assert first == second
    assert quote_sell(BIKE, 1000) == quote_sell(BIKE, 1000)


def test_rent_quote_requires_daily_price():
    item = RentListing(id="t3", owner_id="o", title="Lamp")
    with pytest.raises(InvalidPricingError):
        quote_rent(item, date(2024, 1, 1), date(2024, 1, 2), 1000)


def test_sell_quote_requires_sale_price():
    item = SaleListing(id="s2", owner_id="o", title="Desk")
    with pytest.raises(InvalidPricingError):
        quote_sell(item, 1000)


def test_mode_mismatch_is_rejected():
    with pytest.raises(InvalidModeError):
        quote_rent(BIKE, date(2024, 1, 1), date(2024, 1, 2), 1000)
    with pytest.raises(InvalidModeError):
        quote_sell(TENT, 1000)


def test_order_is_priced_from_its_own_price():
    order = Order(
        id="o1", item_id="b1", buyer_id="x", seller_id="o", price=25000,
        status=OrderStatus.CREATED, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    quote = quote_order(order, 1000)
    assert quote.amount == 25000
    assert quote.fee == 2500
