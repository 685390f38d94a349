"""API test fixtures — FastAPI app wired to the test ledger and FakeGateway.

Invariants:
    - get_container overridden: no lifespan, no real Stripe client, no Postgres
    - Every test gets its own seeded ledger
"""

import pytest
from httpx import ASGITransport, AsyncClient

from marketplace.api.dependencies import build_container, get_container
from marketplace.config import Settings
from marketplace.main import app

ADMIN_KEY = "admin-secret"
SECOND_ADMIN_KEY = "ops-secret"
WEBHOOK_SECRET = "whsec_api_tests"


@pytest.fixture
def api_settings(database_url):
    return Settings(
        database_url=database_url,
        platform_fee_bps=1000,
        currency="jpy",
        public_base_url="http://shop.test",
        stripe_secret_key="sk_test_fake_key",
        stripe_webhook_secret=WEBHOOK_SECRET,
        admin_key=ADMIN_KEY,
        second_admin_key=SECOND_ADMIN_KEY,
    )


@pytest.fixture
async def container(api_settings, seeded_ledger, gateway, clock):
    ledger, _ = seeded_ledger
    return build_container(api_settings, ledger, gateway, clock)


@pytest.fixture
async def client(container):
    app.dependency_overrides[get_container] = lambda: container
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def ids(seeded_ledger):
    return seeded_ledger[1]
