"""Error Hierarchy — typed, categorized exceptions for every marketplace failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are surfaced to the caller, never retried by the core
    - Infrastructure errors (5xx) wrap store and payment-provider failures
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with MarketplaceError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - One class per error kind: callers distinguish NotFound / InvalidMode /
      InvalidDateRange / Conflict by type, not by parsing messages
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    CONFLICT = "conflict"
    AUTHORIZATION = "authorization"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    transaction_id: str | None = None
    item_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "transaction_id": self.context.transaction_id,
                    "item_id": self.context.item_id,
                    "user_id": self.context.user_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (4xx) ────────────────────────────────────────

class ResourceNotFoundError(MarketplaceError):
    """Item, booking, order or user does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidModeError(MarketplaceError):
    """Operation does not match the listing's rent/sell mode."""
    def __init__(
        self, item_id: str, expected: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.item_id = item_id
        super().__init__(
            f"Item '{item_id}' is not in {expected} mode",
            "INVALID_MODE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.expected = expected


class InvalidDateRangeError(MarketplaceError):
    """Rental start is not strictly before its end."""
    def __init__(self, start: object, end: object, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid dates: start {start} must be before end {end}",
            "INVALID_DATE_RANGE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class BookingConflictError(MarketplaceError):
    """Requested range overlaps a non-terminal booking on the same item."""
    def __init__(self, item_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.item_id = item_id
        super().__init__(
            f"Date conflict for item '{item_id}'",
            "DATE_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


class InvalidPricingError(MarketplaceError):
    """Required price field is missing for the listing's mode."""
    def __init__(self, item_id: str, missing: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.item_id = item_id
        super().__init__(
            f"Item '{item_id}' has no {missing}",
            "INVALID_PRICING", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.missing = missing


class SellerNotOnboardedError(MarketplaceError):
    """Seller has no verified payment-destination account."""
    def __init__(self, seller_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_id = seller_id
        super().__init__(
            "Seller is not onboarded to the payment provider",
            "SELLER_NOT_ONBOARDED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )


class AlreadySettledError(MarketplaceError):
    """Checkout requested for a transaction that is already paid."""
    def __init__(
        self, transaction_id: str, status: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.transaction_id = transaction_id
        super().__init__(
            f"Transaction '{transaction_id}' is already settled ({status})",
            "ALREADY_SETTLED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.status = status


class InvalidTransitionError(MarketplaceError):
    """Requested status change is not a legal lifecycle transition."""
    def __init__(
        self, transaction_id: str, current: str, target: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.transaction_id = transaction_id
        super().__init__(
            f"Cannot move '{transaction_id}' from {current} to {target}",
            "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.current = current
        self.target = target


class InvalidStarsError(MarketplaceError):
    """Rating stars outside 1..5."""
    def __init__(self, stars: object, context: ErrorContext | None = None):
        super().__init__(
            f"stars must be 1..5, got {stars}",
            "INVALID_STARS", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class WebhookSignatureError(MarketplaceError):
    """Inbound payment webhook failed signature verification."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Webhook Error: {reason}",
            "WEBHOOK_SIGNATURE_INVALID", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class AdminForbiddenError(MarketplaceError):
    """Admin key missing or not recognised."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "forbidden", "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ConcurrencyError(MarketplaceError):
    """Snapshot version changed between read and write."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (5xx) ────────────────────────────────

class StoreUnavailableError(MarketplaceError):
    """Ledger store read or write failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PaymentProviderError(MarketplaceError):
    """Payment provider call failed, timed out, or is not configured."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Payment provider error ({api_error_type}): {message}",
            "PAYMENT_PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx,
            503 if api_error_type == "not_configured" else 502,
        )
        self.api_error_type = api_error_type
