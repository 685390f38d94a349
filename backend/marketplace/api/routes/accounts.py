"""Accounts — login upsert, ratings, and payment-provider onboarding endpoints.

Invariants:
    - Login performs no credential verification
    - Domain errors propagate to the global MarketplaceError handler
"""

from fastapi import APIRouter, Depends

from marketplace.api.dependencies import get_accounts
from marketplace.schemas.marketplace import (
    ConnectLinkRequest, ConnectLinkResponse, ConnectStatusResponse,
    LoginRequest, LoginResponse, RatingCreate, RatingResponse, UserResponse,
)
from marketplace.services.account_service import AccountService

router = APIRouter(prefix="/api", tags=["accounts"])


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, accounts: AccountService = Depends(get_accounts)):
    user, trust = await accounts.login(body.name, body.phone)
    return LoginResponse(user=UserResponse.from_domain(user), trust=trust)


@router.post("/connect/create-link", response_model=ConnectLinkResponse)
async def create_onboarding_link(
    body: ConnectLinkRequest, accounts: AccountService = Depends(get_accounts),
):
    url = await accounts.create_onboarding_link(body.user_id)
    return ConnectLinkResponse(url=url)


@router.get("/connect/status/{user_id}", response_model=ConnectStatusResponse)
async def onboarding_status(
    user_id: str, accounts: AccountService = Depends(get_accounts),
):
    status = await accounts.onboarding_status(user_id)
    return ConnectStatusResponse(connected=status.connected, account_id=status.account_id)


@router.post("/ratings", response_model=RatingResponse)
async def submit_rating(
    body: RatingCreate, accounts: AccountService = Depends(get_accounts),
):
    summary, trust = await accounts.rate(
        body.target_user_id, body.by_user_id, body.stars, body.comment,
    )
    return RatingResponse(score=summary.score, reviews=summary.reviews, trust=trust)
