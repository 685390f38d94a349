"""Root conftest — shared test configuration and fixtures.

Invariants:
    - Tests never talk to a real Stripe account or a real Postgres
    - Every test gets a fresh SQLite ledger file under tmp_path
    - Clock and ids are deterministic (fixed instant, counter ids)

Design Decisions:
    - FakeGateway implements the PaymentGateway protocol structurally (no inheritance)
    - File-backed SQLite: no external dependency, and separate connections really race on the CAS store
"""

import itertools
import os
from datetime import datetime, timezone

# Ensure tests don't accidentally use real API keys
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_fake_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from marketplace.core.domain_types import ItemMode
from marketplace.core.errors import PaymentProviderError
from marketplace.core.ledger_types import LedgerSnapshot, Stamp, User
from marketplace.core.listings import create_item
from marketplace.core.repository_protocols import CheckoutSessionRequest
from marketplace.db.base import Base
from marketplace.infrastructure.database import DatabaseSessionManager
from marketplace.infrastructure.ledger_store import SqlLedgerStore
from marketplace.services.ledger import Ledger


FIXED_NOW = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class CountingClock:
    """Callable clock: each call returns a Stamp at FIXED_NOW with counter ids."""

    def __init__(self):
        self._counter = itertools.count(1)

    def new_id(self, length: int) -> str:
        return str(next(self._counter)).zfill(length)

    def __call__(self) -> Stamp:
        return Stamp(at=FIXED_NOW, new_id=self.new_id)


class FakeGateway:
    """In-memory PaymentGateway; records every call."""

    def __init__(self):
        self.verified = True
        self.accounts_created = 0
        self.onboarding_links: list[tuple[str, str, str]] = []
        self.sessions: list[CheckoutSessionRequest] = []
        self.checkout_error: Exception | None = None

    async def create_connect_account(self) -> str:
        self.accounts_created += 1
        return f"acct_{self.accounts_created}"

    async def create_onboarding_link(
        self, account_id: str, refresh_url: str, return_url: str,
    ) -> str:
        self.onboarding_links.append((account_id, refresh_url, return_url))
        return f"https://connect.test/{account_id}"

    async def is_account_verified(self, account_id: str) -> bool:
        return self.verified

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> str:
        if self.checkout_error is not None:
            raise self.checkout_error
        self.sessions.append(request)
        return f"https://checkout.test/session/{len(self.sessions)}"


@pytest.fixture
def clock():
    return CountingClock()


@pytest.fixture
def stamp(clock):
    return clock()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def provider_down():
    return PaymentProviderError("HTTP 500", "connection_error")


@pytest.fixture
def database_url(tmp_path):
    """File-backed SQLite so separate engines see each other's commits."""
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
async def test_engine(database_url):
    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db(test_engine):
    factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    return DatabaseSessionManager.from_engine(test_engine, factory)


@pytest.fixture
async def store(db):
    return SqlLedgerStore(db)


@pytest.fixture
async def ledger(store):
    return Ledger(store, max_write_retries=3)


def build_marketplace(snapshot: LedgerSnapshot, stamp: Stamp) -> dict[str, str]:
    """Owner (onboarded), renter, unboarded seller, plus one rent and one sell item.

    Returns the ids by role.
    """
    owner = User(id="owner1", name="Aiko", phone="0901", stripe_account_id="acct_owner")
    renter = User(id="renter1", name="Ben", phone="0902")
    newbie = User(id="newbie1", name="Chika", phone="0903")
    snapshot.users.extend([owner, renter, newbie])

    rent = create_item(
        snapshot, owner_id=owner.id, mode=ItemMode.RENT, title="Camping Tent",
        city="Osaka", desc="4-person dome", price_per_day=1000, deposit=500,
        stamp=stamp,
    )
    sell = create_item(
        snapshot, owner_id=owner.id, mode=ItemMode.SELL, title="Road Bike",
        city="Kyoto", price_sell=30000, stamp=stamp,
    )
    newbie_rent = create_item(
        snapshot, owner_id=newbie.id, mode=ItemMode.RENT, title="Projector",
        city="Tokyo", price_per_day=800, stamp=stamp,
    )
    return {
        "owner": owner.id,
        "renter": renter.id,
        "newbie": newbie.id,
        "rent_item": rent.id,
        "sell_item": sell.id,
        "newbie_item": newbie_rent.id,
    }


@pytest.fixture
def market(stamp):
    """(snapshot, ids) built in memory, no store involved."""
    snap = LedgerSnapshot()
    return snap, build_marketplace(snap, stamp)


@pytest.fixture
async def seeded_ledger(ledger, clock):
    """Ledger whose store already holds the build_marketplace fixture."""
    stamp = clock()
    ids = await ledger.mutate(lambda snap: build_marketplace(snap, stamp))
    return ledger, ids
