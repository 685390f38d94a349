"""Payment Webhooks — verifies Stripe deliveries and hands them to the settlement handler.

Invariants:
    - The raw request body is verified BEFORE it is parsed
    - Bad signatures -> 400 (WebhookSignatureError); the provider will not retry those
    - Unknown or duplicate events still answer {"received": true}
    - Store failures propagate as 503 so the provider redelivers the event
"""

import logging

from fastapi import APIRouter, Depends, Header, Request

from marketplace.api.dependencies import (
    ServiceContainer, get_container, get_settlement,
)
from marketplace.infrastructure.webhook_signature import verify_and_parse_event
from marketplace.services.settlement_reconciler import (
    PaymentEvent, SettlementEventHandler,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None),
    container: ServiceContainer = Depends(get_container),
    settlement: SettlementEventHandler = Depends(get_settlement),
):
    payload = await request.body()
    event = verify_and_parse_event(
        payload,
        stripe_signature,
        container.settings.stripe_webhook_secret,
        tolerance_seconds=container.settings.webhook_tolerance_seconds,
    )
    message = PaymentEvent.from_provider_event(event)
    logger.info(
        "Payment webhook received",
        extra={"event_id": message.event_id, "event_type": message.event_type},
    )
    await settlement.handle(message)
    return {"received": True}
