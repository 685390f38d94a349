"""Listings — create and browse rent/sell items."""

from fastapi import APIRouter, Depends

from marketplace.api.dependencies import get_listings
from marketplace.core.domain_types import ItemMode
from marketplace.schemas.marketplace import ItemCreate, ItemResponse
from marketplace.services.listing_service import ListingService

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", response_model=list[ItemResponse])
async def list_items(listings: ListingService = Depends(get_listings)):
    return [ItemResponse.from_domain(i) for i in await listings.list_items()]


@router.post("", response_model=ItemResponse)
async def create_item(body: ItemCreate, listings: ListingService = Depends(get_listings)):
    item = await listings.create_item(
        owner_id=body.owner_id,
        mode=ItemMode(body.mode),
        title=body.title,
        city=body.city,
        desc=body.desc,
        price_per_day=body.price_per_day,
        deposit=body.deposit,
        price_sell=body.price_sell,
    )
    return ItemResponse.from_domain(item)
