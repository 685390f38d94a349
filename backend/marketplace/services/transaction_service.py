"""Transaction Service — booking/order lifecycle orchestration around the pure state machine.

Invariants:
    - create_booking's conflict check and insert run inside one Ledger.mutate section
    - begin_checkout never holds the write section while calling the payment provider
    - SellerNotOnboardedError / PaymentProviderError leave the transaction untouched
    - Status moves to payment_required only after the provider returned a session

Design Decisions:
    - Shell/core split: plan_checkout (pure, read-only) -> provider calls -> mark_payment_required
      (pure, under the write section) (ADR: impureim sandwich)
    - Provider idempotency key derived from the correlation key and snapshot version:
      a retried HTTP call reuses it, a genuinely new checkout gets a fresh one
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from marketplace.core.domain_types import TransactionKind
from marketplace.core.errors import SellerNotOnboardedError
from marketplace.core.ledger_types import Booking, Order, Stamp
from marketplace.core.repository_protocols import (
    CheckoutSessionRequest, PaymentGateway,
)
from marketplace.core.settlement import CorrelationKey
from marketplace.core.transitions import (
    cancel_transaction, complete_transaction, create_booking, create_order,
    mark_payment_required, plan_checkout,
)
from marketplace.services.ledger import Ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    url: str
    amount: int
    fee: int
    description: str
    correlation_key: CorrelationKey


class TransactionService:
    """Bookings, orders, and checkout."""

    def __init__(
        self,
        ledger: Ledger,
        gateway: PaymentGateway,
        *,
        fee_bps: int,
        currency: str,
        public_base_url: str,
        clock: Callable[[], Stamp] = Stamp.now,
    ):
        self._ledger = ledger
        self._gateway = gateway
        self._fee_bps = fee_bps
        self._currency = currency
        self._base_url = public_base_url.rstrip("/")
        self._clock = clock

    async def create_booking(
        self, item_id: str, borrower_id: str, start: date, end: date,
    ) -> Booking:
        stamp = self._clock()
        booking = await self._ledger.mutate(
            lambda snap: create_booking(snap, item_id, borrower_id, start, end, stamp),
        )
        logger.info(
            "Booking requested",
            extra={"transaction_id": booking.id, "action": "request_booking"},
        )
        return booking

    async def create_order(self, item_id: str, buyer_id: str) -> Order:
        stamp = self._clock()
        order = await self._ledger.mutate(
            lambda snap: create_order(snap, item_id, buyer_id, stamp),
        )
        logger.info(
            "Order created",
            extra={"transaction_id": order.id, "action": "create_order"},
        )
        return order

    async def begin_checkout(
        self, kind: TransactionKind, transaction_id: str,
    ) -> CheckoutResult:
        """Open a provider checkout session and mark the transaction payment_required."""
        key = CorrelationKey(kind=kind, transaction_id=transaction_id)
        snapshot = await self._ledger.read()
        plan = plan_checkout(snapshot, key, self._fee_bps)

        if not await self._gateway.is_account_verified(plan.destination_account):
            raise SellerNotOnboardedError(plan.seller_id)

        url = await self._gateway.create_checkout_session(CheckoutSessionRequest(
            amount=plan.amount,
            fee=plan.fee,
            currency=self._currency,
            description=plan.description,
            destination_account=plan.destination_account,
            metadata=plan.metadata,
            success_url=self._return_url("paid", key),
            cancel_url=self._return_url("cancel", key),
            idempotency_key=f"checkout-{key.kind.value}-{key.transaction_id}-v{snapshot.version}",
        ))

        stamp = self._clock()
        await self._ledger.mutate(
            lambda snap: mark_payment_required(snap, key, stamp),
        )
        logger.info(
            "Checkout session opened",
            extra={
                "transaction_id": transaction_id,
                "correlation_key": str(key),
                "action": f"checkout_{kind.value}",
            },
        )
        return CheckoutResult(
            url=url, amount=plan.amount, fee=plan.fee,
            description=plan.description, correlation_key=key,
        )

    async def complete(
        self, kind: TransactionKind, transaction_id: str, actor: str,
    ) -> Booking | Order:
        key = CorrelationKey(kind=kind, transaction_id=transaction_id)
        stamp = self._clock()
        return await self._ledger.mutate(
            lambda snap: complete_transaction(snap, key, actor, stamp),
        )

    async def cancel(
        self, kind: TransactionKind, transaction_id: str, actor: str,
    ) -> Booking | Order:
        key = CorrelationKey(kind=kind, transaction_id=transaction_id)
        stamp = self._clock()
        return await self._ledger.mutate(
            lambda snap: cancel_transaction(snap, key, actor, stamp),
        )

    def _return_url(self, flag: str, key: CorrelationKey) -> str:
        id_param = "booking" if key.kind == TransactionKind.RENT else "order"
        return (
            f"{self._base_url}/?{flag}=1&type={key.kind.value}"
            f"&{id_param}={key.transaction_id}"
        )
