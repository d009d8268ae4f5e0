"""pm_trade REST API: listing creation, purchase, claim, cancel and queries.

All endpoints require JWT authentication; the caller is the seller for
create/claim/cancel and the buyer for purchase.
"""
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_trade.application.schemas import CreateListingRequest, PurchaseListingRequest
from src.pm_trade.application.service import TradeApplicationService

router = APIRouter(prefix="/trade", tags=["trade"])

_service = TradeApplicationService()


def get_trade_service() -> TradeApplicationService:
    return _service


def _respond(request: Request, data: object, message: str = "success") -> ApiResponse:
    resp = success_response(data, message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/listings")
async def get_listings(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TradeApplicationService, Depends(get_trade_service)],
    request: Request,
    item: str | None = Query(None),
    currency: str | None = Query(None),
    listed_from: datetime | None = Query(None, description="Inclusive lower bound"),
    listed_to: datetime | None = Query(None, description="Inclusive upper bound"),
    seller_id: str | None = Query(None),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int | None = Query(None, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await service.get_listings(
        db, item, currency, listed_from, listed_to, seller_id, cursor, limit
    )
    return _respond(request, data.model_dump(), "Trade listings fetched")


@router.get("/listings/mine")
async def get_my_listings(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TradeApplicationService, Depends(get_trade_service)],
    request: Request,
    item: str | None = Query(None),
    currency: str | None = Query(None),
    listed_from: datetime | None = Query(None),
    listed_to: datetime | None = Query(None),
    cursor: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=100),
) -> ApiResponse:
    data = await service.get_user_listings(
        db, user_id, item, currency, listed_from, listed_to, cursor, limit
    )
    return _respond(request, data.model_dump(), "Trade listings fetched for user")


@router.get("/listings/{listing_id}")
async def get_listing(
    listing_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TradeApplicationService, Depends(get_trade_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_listing(db, listing_id)
    return _respond(request, data.model_dump())


@router.post("/listings")
async def create_listing(
    body: CreateListingRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TradeApplicationService, Depends(get_trade_service)],
    request: Request,
) -> ApiResponse:
    data = await service.create_listing(db, user_id, body)
    return _respond(request, data.model_dump(), "Listing successfully added")


@router.post("/listings/{listing_id}/purchase")
async def purchase_listing(
    listing_id: str,
    body: PurchaseListingRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TradeApplicationService, Depends(get_trade_service)],
    request: Request,
) -> ApiResponse:
    data = await service.purchase(db, listing_id, user_id, body)
    return _respond(request, data.model_dump(), "Listing purchased successfully")


@router.post("/listings/{listing_id}/claim")
async def claim_listing(
    listing_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TradeApplicationService, Depends(get_trade_service)],
    request: Request,
) -> ApiResponse:
    data = await service.claim(db, listing_id, user_id)
    return _respond(request, data.model_dump(), "Listing claimed successfully")


@router.post("/listings/{listing_id}/cancel")
async def cancel_listing(
    listing_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[TradeApplicationService, Depends(get_trade_service)],
    request: Request,
) -> ApiResponse:
    data = await service.cancel(db, listing_id, user_id)
    return _respond(request, data.model_dump(), "Listing cancelled successfully")
