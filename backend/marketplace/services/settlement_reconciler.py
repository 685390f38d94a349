"""Settlement Reconciler — applies asynchronous payment-completion events exactly once.

Invariants:
    - apply_payment_completed is idempotent: duplicate delivery leaves state as after the first
    - Unknown correlation keys are logged and dropped, never raised to the caller
    - The snapshot is written only when a transition was actually applied
    - StoreUnavailableError propagates: the webhook then answers 5xx and the
      provider redelivers (at-least-once)

Design Decisions:
    - PaymentEvent message + SettlementEventHandler decouple provider events from the
      HTTP transport: the handler can be driven with synthetic events in tests
    - Only checkout.session.completed advances state; other event types are acknowledged
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from marketplace.core.ledger_types import Stamp
from marketplace.core.settlement import (
    CorrelationKey, SettlementOutcome, apply_payment_completed,
)
from marketplace.services.ledger import Ledger

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class PaymentEvent:
    """Provider event reduced to what reconciliation needs."""
    event_id: str
    event_type: str
    correlation_key: CorrelationKey | None

    @classmethod
    def from_provider_event(cls, event: dict) -> "PaymentEvent":
        """Build from a decoded Stripe event body."""
        obj = (event.get("data") or {}).get("object") or {}
        return cls(
            event_id=str(event.get("id", "")),
            event_type=str(event.get("type", "")),
            correlation_key=CorrelationKey.from_metadata(obj.get("metadata")),
        )


class SettlementReconciler:
    """Joins completion events to local transactions via the correlation key."""

    def __init__(self, ledger: Ledger, clock: Callable[[], Stamp] = Stamp.now):
        self._ledger = ledger
        self._clock = clock

    async def apply_payment_completed(self, key: CorrelationKey) -> SettlementOutcome:
        stamp = self._clock()
        outcome = await self._ledger.mutate(
            lambda snap: apply_payment_completed(snap, key, stamp),
            should_write=lambda result: result == SettlementOutcome.APPLIED,
        )
        extra = {
            "correlation_key": str(key),
            "transaction_id": key.transaction_id,
            "outcome": outcome.value,
        }
        if outcome == SettlementOutcome.APPLIED:
            logger.info("Payment settled", extra=extra)
        elif outcome == SettlementOutcome.ALREADY_SETTLED:
            logger.info("Duplicate payment completion ignored", extra=extra)
        elif outcome == SettlementOutcome.IGNORED_CANCELLED:
            logger.warning("Payment completed for a cancelled transaction", extra=extra)
        else:
            logger.warning("Payment completion for unknown transaction dropped", extra=extra)
        return outcome


class SettlementEventHandler:
    """Routes inbound payment events to the reconciler."""

    def __init__(self, reconciler: SettlementReconciler):
        self._reconciler = reconciler

    async def handle(self, event: PaymentEvent) -> SettlementOutcome | None:
        """Return the reconciliation outcome, or None if the event needs no action."""
        if event.event_type != CHECKOUT_COMPLETED:
            logger.debug(
                f"Ignoring payment event type {event.event_type}",
                extra={"event_id": event.event_id, "event_type": event.event_type},
            )
            return None
        if event.correlation_key is None:
            logger.warning(
                "Completed checkout without correlation metadata",
                extra={"event_id": event.event_id, "event_type": event.event_type},
            )
            return None
        return await self._reconciler.apply_payment_completed(event.correlation_key)
