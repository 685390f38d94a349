"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: boundary methods do IO, but core pure functions that
      consume their results are never async themselves
    - LedgerStore exposes whole-snapshot read/write only; serializing writers is
      the caller's job (services/ledger.py), detecting lost races is the store's
      (write_snapshot compares versions)
"""

from dataclasses import dataclass, field
from typing import Protocol

from marketplace.core.ledger_types import LedgerSnapshot


class LedgerStore(Protocol):
    """Durable whole-document store — implemented by shell."""
    async def read_snapshot(self) -> LedgerSnapshot: ...
    async def write_snapshot(self, snapshot: LedgerSnapshot) -> int:
        """Persist snapshot if its version is still current; return the new version.

        Raises ConcurrencyError when another writer got there first.
        """
        ...


@dataclass(frozen=True)
class CheckoutSessionRequest:
    """Provider-neutral description of a destination-charge checkout."""
    amount: int
    fee: int
    currency: str
    description: str
    destination_account: str
    metadata: dict[str, str]
    success_url: str
    cancel_url: str
    idempotency_key: str | None = None
    payment_method_types: list[str] = field(default_factory=lambda: ["card"])


class PaymentGateway(Protocol):
    """External payment capability — implemented by shell."""
    async def create_connect_account(self) -> str: ...
    async def create_onboarding_link(
        self, account_id: str, refresh_url: str, return_url: str,
    ) -> str: ...
    async def is_account_verified(self, account_id: str) -> bool: ...
    async def create_checkout_session(
        self, request: CheckoutSessionRequest,
    ) -> str: ...
