"""Resilient Stripe Client — wraps stripe.StripeClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, timeout): max `max_retries` retries with backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - Every create call carries one idempotency key for all its attempts: a retried
      request can never open two checkout sessions or two accounts
    - All failures mapped to PaymentProviderError (core/errors.py)

Design Decisions:
    - Wrapper over raw client: isolates retry logic from the services (ADR: single responsibility)
    - SDK-side retries disabled (max_network_retries=0): one retry policy, ours
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - Implements core PaymentGateway protocol; services never see the SDK
"""

import asyncio
import random
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import stripe
from stripe import (
    APIConnectionError,
    APIError,
    RateLimitError,
    StripeError,
)

from marketplace.core.errors import PaymentProviderError, ErrorContext
from marketplace.core.repository_protocols import CheckoutSessionRequest

logger = logging.getLogger(__name__)


class ResilientStripeClient:
    """Stripe Connect + Checkout client implementing PaymentGateway."""

    def __init__(
        self,
        api_key: str,
        api_base: str | None = None,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        timeout_seconds: float = 30.0,
        sdk: Any = None,
    ):
        self.api_key = api_key
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._http_client = None
        if sdk is None and api_key:
            self._http_client = stripe.HTTPXClient(timeout=timeout_seconds)
            sdk = stripe.StripeClient(
                api_key,
                base_addresses={"api": api_base} if api_base else {},
                max_network_retries=0,
                http_client=self._http_client,
            )
        self.sdk = sdk

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.close_async()

    # ─── PaymentGateway ─────────────────────────────────────────

    async def create_connect_account(self) -> str:
        key = uuid.uuid4().hex
        account = await self._call(
            "accounts.create",
            lambda: self.sdk.v1.accounts.create_async(
                params={"type": "standard"},
                options={"idempotency_key": key},
            ),
        )
        return account.id

    async def create_onboarding_link(
        self, account_id: str, refresh_url: str, return_url: str,
    ) -> str:
        link = await self._call(
            "account_links.create",
            lambda: self.sdk.v1.account_links.create_async(params={
                "account": account_id,
                "refresh_url": refresh_url,
                "return_url": return_url,
                "type": "account_onboarding",
            }),
        )
        return link.url

    async def is_account_verified(self, account_id: str) -> bool:
        """details_submitted and nothing currently due."""
        account = await self._call(
            "accounts.retrieve",
            lambda: self.sdk.v1.accounts.retrieve_async(account_id),
        )
        requirements = getattr(account, "requirements", None)
        currently_due = getattr(requirements, "currently_due", None) or []
        return bool(getattr(account, "details_submitted", False)) and not currently_due

    async def create_checkout_session(
        self, request: CheckoutSessionRequest,
    ) -> str:
        key = request.idempotency_key or uuid.uuid4().hex
        params = {
            "mode": "payment",
            "payment_method_types": list(request.payment_method_types),
            "line_items": [{
                "price_data": {
                    "currency": request.currency,
                    "product_data": {"name": request.description},
                    "unit_amount": request.amount,
                },
                "quantity": 1,
            }],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": request.metadata,
            "payment_intent_data": {
                "application_fee_amount": request.fee,
                "transfer_data": {"destination": request.destination_account},
            },
        }
        session = await self._call(
            "checkout.sessions.create",
            lambda: self.sdk.v1.checkout.sessions.create_async(
                params=params, options={"idempotency_key": key},
            ),
            context=ErrorContext(
                transaction_id=(
                    request.metadata.get("bookingId")
                    or request.metadata.get("orderId")
                ),
            ),
        )
        return session.url

    # ─── Retry ──────────────────────────────────────────────────

    async def _call(
        self,
        operation: str,
        send: Callable[[], Awaitable[Any]],
        context: ErrorContext | None = None,
    ) -> Any:
        """Run one SDK call with automatic retry on transient failures."""
        if self.sdk is None:
            raise PaymentProviderError(
                "Stripe not configured", "not_configured", context=context,
            )
        for attempt in range(self.max_retries + 1):
            try:
                result = await send()
                logger.info(
                    f"Stripe {operation} ok", extra={"attempt": attempt + 1},
                )
                return result

            except RateLimitError as e:
                await self._handle_rate_limit(e, attempt, context)

            except (APIConnectionError, APIError) as e:
                await self._handle_transient_error(e, attempt, context)

            except StripeError as e:
                raise PaymentProviderError(
                    e.user_message or str(e), "client_error", context=context,
                )

        # unreachable: the handlers raise on the final attempt
        raise PaymentProviderError("retries exhausted", "connection_error", context=context)

    async def _handle_rate_limit(
        self, e: RateLimitError, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle rate limit error with retry or raise."""
        retry_after_ms = self._extract_retry_after(e)
        if attempt >= self.max_retries:
            raise PaymentProviderError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Stripe rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: StripeError, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise PaymentProviderError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Stripe transient error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    @staticmethod
    def _extract_retry_after(error: StripeError) -> int | None:
        """Retry-After header in milliseconds, if parseable."""
        headers = error.headers or {}
        val = headers.get("retry-after") or headers.get("Retry-After")
        if val and str(val).isdigit():
            return int(val) * 1000
        return None
