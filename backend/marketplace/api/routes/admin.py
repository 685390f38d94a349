"""Admin — read-only audit, transaction and search views behind X-Admin-Key."""

from fastapi import APIRouter, Depends, Query

from marketplace.api.dependencies import get_listings, require_admin
from marketplace.schemas.marketplace import (
    AuditEntryResponse, BookingResponse, ItemResponse, OrderResponse,
)
from marketplace.services.listing_service import ListingService

router = APIRouter(prefix="/api", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/audit", response_model=list[AuditEntryResponse])
async def audit_log(listings: ListingService = Depends(get_listings)):
    return [AuditEntryResponse.from_domain(a) for a in await listings.recent_audit()]


@router.get("/admin/bookings", response_model=list[BookingResponse])
async def admin_bookings(listings: ListingService = Depends(get_listings)):
    return [BookingResponse.from_domain(b) for b in await listings.recent_bookings()]


@router.get("/admin/orders", response_model=list[OrderResponse])
async def admin_orders(listings: ListingService = Depends(get_listings)):
    return [OrderResponse.from_domain(o) for o in await listings.recent_orders()]


@router.get("/admin/search", response_model=list[ItemResponse])
async def admin_search(
    q: str = Query("", max_length=200),
    listings: ListingService = Depends(get_listings),
):
    return [ItemResponse.from_domain(i) for i in await listings.search(q)]
