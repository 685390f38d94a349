"""API Dependencies — service container and FastAPI dependency providers.

Invariants:
    - One ServiceContainer per process, built in the lifespan and stored on app.state
    - Routes receive services through Depends(), never by importing singletons
    - Admin endpoints require X-Admin-Key equal to admin_key or second_admin_key
      (constant-time compare); no key configured means no admin access

Design Decisions:
    - Tests swap the whole container via app.dependency_overrides[get_container]
"""

import hmac
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, Header, Request

from marketplace.config import Settings
from marketplace.core.errors import AdminForbiddenError
from marketplace.core.ledger_types import Stamp
from marketplace.core.repository_protocols import PaymentGateway
from marketplace.services.account_service import AccountService
from marketplace.services.ledger import Ledger
from marketplace.services.listing_service import ListingService
from marketplace.services.settlement_reconciler import (
    SettlementEventHandler, SettlementReconciler,
)
from marketplace.services.transaction_service import TransactionService


@dataclass
class ServiceContainer:
    settings: Settings
    ledger: Ledger
    accounts: AccountService
    listings: ListingService
    transactions: TransactionService
    settlement: SettlementEventHandler


def build_container(
    settings: Settings,
    ledger: Ledger,
    gateway: PaymentGateway,
    clock: Callable[[], Stamp] = Stamp.now,
) -> ServiceContainer:
    """Wire services around one ledger and one payment gateway."""
    return ServiceContainer(
        settings=settings,
        ledger=ledger,
        accounts=AccountService(
            ledger, gateway, public_base_url=settings.public_base_url, clock=clock,
        ),
        listings=ListingService(ledger, clock),
        transactions=TransactionService(
            ledger, gateway,
            fee_bps=settings.platform_fee_bps,
            currency=settings.currency,
            public_base_url=settings.public_base_url,
            clock=clock,
        ),
        settlement=SettlementEventHandler(SettlementReconciler(ledger, clock)),
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_accounts(container: ServiceContainer = Depends(get_container)) -> AccountService:
    return container.accounts


def get_listings(container: ServiceContainer = Depends(get_container)) -> ListingService:
    return container.listings


def get_transactions(
    container: ServiceContainer = Depends(get_container),
) -> TransactionService:
    return container.transactions


def get_settlement(
    container: ServiceContainer = Depends(get_container),
) -> SettlementEventHandler:
    return container.settlement


def require_admin(
    x_admin_key: str | None = Header(None),
    container: ServiceContainer = Depends(get_container),
) -> None:
    """Reject the request unless it carries a configured admin key."""
    keys = [
        k for k in (container.settings.admin_key, container.settings.second_admin_key)
        if k
    ]
    if not x_admin_key or not any(
        hmac.compare_digest(x_admin_key, k) for k in keys
    ):
        raise AdminForbiddenError()
