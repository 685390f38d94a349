"""Transactions — booking/order lifecycle and unified checkout endpoints.

Invariants:
    - Conflict -> 409, invalid mode/dates/pricing -> 400, missing entity -> 404
      (status codes come from the MarketplaceError subclasses)
    - Checkout accepts {type: rent|sell, id} and returns the provider session URL
"""

from fastapi import APIRouter, Depends

from marketplace.api.dependencies import get_transactions
from marketplace.core.domain_types import TransactionKind
from marketplace.schemas.marketplace import (
    BookingCreate, BookingResponse, CheckoutCreate, CheckoutResponse,
    OrderCreate, OrderResponse, TransitionRequest,
)
from marketplace.services.transaction_service import TransactionService

router = APIRouter(prefix="/api", tags=["transactions"])


# ─── Bookings ───────────────────────────────────────────────────

@router.post("/bookings", response_model=BookingResponse)
async def request_booking(
    body: BookingCreate, transactions: TransactionService = Depends(get_transactions),
):
    booking = await transactions.create_booking(
        body.item_id, body.borrower_id, body.start_date, body.end_date,
    )
    return BookingResponse.from_domain(booking)


@router.post("/bookings/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str, body: TransitionRequest,
    transactions: TransactionService = Depends(get_transactions),
):
    booking = await transactions.complete(TransactionKind.RENT, booking_id, body.actor_id)
    return BookingResponse.from_domain(booking)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str, body: TransitionRequest,
    transactions: TransactionService = Depends(get_transactions),
):
    booking = await transactions.cancel(TransactionKind.RENT, booking_id, body.actor_id)
    return BookingResponse.from_domain(booking)


# ─── Orders ─────────────────────────────────────────────────────

@router.post("/orders", response_model=OrderResponse)
async def create_order(
    body: OrderCreate, transactions: TransactionService = Depends(get_transactions),
):
    order = await transactions.create_order(body.item_id, body.buyer_id)
    return OrderResponse.from_domain(order)


@router.post("/orders/{order_id}/complete", response_model=OrderResponse)
async def complete_order(
    order_id: str, body: TransitionRequest,
    transactions: TransactionService = Depends(get_transactions),
):
    order = await transactions.complete(TransactionKind.SELL, order_id, body.actor_id)
    return OrderResponse.from_domain(order)


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str, body: TransitionRequest,
    transactions: TransactionService = Depends(get_transactions),
):
    order = await transactions.cancel(TransactionKind.SELL, order_id, body.actor_id)
    return OrderResponse.from_domain(order)


# ─── Checkout ───────────────────────────────────────────────────

@router.post("/pay/checkout", response_model=CheckoutResponse)
async def checkout(
    body: CheckoutCreate, transactions: TransactionService = Depends(get_transactions),
):
    result = await transactions.begin_checkout(TransactionKind(body.type), body.id)
    return CheckoutResponse(
        url=result.url, amount=result.amount, fee=result.fee,
        description=result.description,
    )
