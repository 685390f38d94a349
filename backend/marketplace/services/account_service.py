"""Account Service — login, ratings, trust score, and payment-provider onboarding.

Invariants:
    - Login never verifies credentials (upsert by phone, then by name)
    - Trust score for an unknown user is 0
    - A connected account is created at most once per user; the onboarding link
      is regenerated on every call
    - Onboarding status is "not connected" until the provider reports the account verified
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from marketplace.core.accounts import (
    LoginResult, attach_payment_account, login_or_signup, require_user,
)
from marketplace.core.ledger_types import LedgerSnapshot, Stamp, User
from marketplace.core.ratings import RatingSummary, submit_rating
from marketplace.core.repository_protocols import PaymentGateway
from marketplace.core.trust_score import trust_score
from marketplace.services.ledger import Ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnboardingStatus:
    connected: bool
    account_id: str | None = None


def trust_from_snapshot(snapshot: LedgerSnapshot, user_id: str) -> int:
    user = snapshot.find_user(user_id)
    if user is None:
        return 0
    return trust_score(user, snapshot.bookings, snapshot.orders)


class AccountService:
    """Users, reputation, and seller onboarding."""

    def __init__(
        self,
        ledger: Ledger,
        gateway: PaymentGateway,
        *,
        public_base_url: str,
        clock: Callable[[], Stamp] = Stamp.now,
    ):
        self._ledger = ledger
        self._gateway = gateway
        self._base_url = public_base_url.rstrip("/")
        self._clock = clock

    async def login(self, name: str | None, phone: str | None) -> tuple[User, int]:
        stamp = self._clock()
        result: LoginResult = await self._ledger.mutate(
            lambda snap: login_or_signup(snap, name, phone, stamp),
        )
        return result.user, await self.trust_for(result.user.id)

    async def trust_for(self, user_id: str) -> int:
        return trust_from_snapshot(await self._ledger.read(), user_id)

    async def rate(
        self, target_user_id: str, by_user_id: str, stars: int, comment: str,
    ) -> tuple[RatingSummary, int]:
        stamp = self._clock()
        summary = await self._ledger.mutate(
            lambda snap: submit_rating(
                snap, target_user_id, by_user_id, stars, comment, stamp,
            ),
        )
        return summary, await self.trust_for(target_user_id)

    async def create_onboarding_link(self, user_id: str) -> str:
        snapshot = await self._ledger.read()
        user = require_user(snapshot, user_id)

        account_id = user.stripe_account_id
        if not account_id:
            created = await self._gateway.create_connect_account()
            stamp = self._clock()
            user = await self._ledger.mutate(
                lambda snap: attach_payment_account(snap, user_id, created, stamp),
            )
            account_id = user.stripe_account_id
            logger.info(
                f"Connected account {account_id} linked to user {user_id}",
                extra={"action": "connect_account_created"},
            )

        return await self._gateway.create_onboarding_link(
            account_id,
            refresh_url=f"{self._base_url}/onboarding-refresh",
            return_url=f"{self._base_url}/onboarding-done",
        )

    async def onboarding_status(self, user_id: str) -> OnboardingStatus:
        snapshot = await self._ledger.read()
        user = snapshot.find_user(user_id)
        if user is None or not user.stripe_account_id:
            return OnboardingStatus(connected=False)
        verified = await self._gateway.is_account_verified(user.stripe_account_id)
        return OnboardingStatus(connected=verified, account_id=user.stripe_account_id)
