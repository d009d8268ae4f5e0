"""TradeApplicationService: thin composition layer over ListingEngine.

Translates request schemas into engine calls and engine results into
response schemas. Transactions are owned by the engine.
"""
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_common.datetime_utils import ensure_utc
from src.pm_trade.application.schemas import (
    CreateListingRequest,
    ListingListResponse,
    ListingOut,
    PurchaseListingRequest,
    PurchaseResponse,
    SettlementResponse,
)
from src.pm_trade.domain.models import ListingFilter
from src.pm_trade.engine.listing_engine import ListingEngine
from src.pm_trade.infrastructure.persistence import ListingRepository


class TradeApplicationService:
    def __init__(self, engine: ListingEngine | None = None) -> None:
        self._engine = engine or ListingEngine(AccountRepository(), ListingRepository())

    async def create_listing(
        self, db: AsyncSession, seller_id: str, req: CreateListingRequest
    ) -> ListingOut:
        listing = await self._engine.create_listing(
            db, seller_id, req.item, req.amount, req.price, req.currency.value
        )
        return ListingOut.from_domain(listing)

    async def purchase(
        self, db: AsyncSession, listing_id: str, buyer_id: str, req: PurchaseListingRequest
    ) -> PurchaseResponse:
        result = await self._engine.purchase(db, listing_id, buyer_id, req.amount)
        return PurchaseResponse.from_result(result)

    async def claim(
        self, db: AsyncSession, listing_id: str, seller_id: str
    ) -> SettlementResponse:
        return SettlementResponse.from_result(
            await self._engine.claim(db, listing_id, seller_id)
        )

    async def cancel(
        self, db: AsyncSession, listing_id: str, seller_id: str
    ) -> SettlementResponse:
        return SettlementResponse.from_result(
            await self._engine.cancel(db, listing_id, seller_id)
        )

    async def get_listing(self, db: AsyncSession, listing_id: str) -> ListingOut:
        return ListingOut.from_domain(await self._engine.get_listing(db, listing_id))

    async def get_listings(
        self,
        db: AsyncSession,
        item: str | None,
        currency: str | None,
        listed_from: datetime | None,
        listed_to: datetime | None,
        seller_id: str | None,
        cursor: str | None,
        limit: int | None,
    ) -> ListingListResponse:
        page = await self._engine.get_listings(
            db,
            ListingFilter(
                item=item,
                currency=currency,
                listed_from=ensure_utc(listed_from),
                listed_to=ensure_utc(listed_to),
                seller_id=seller_id,
                cursor=cursor,
                limit=limit,
            ),
        )
        return ListingListResponse.from_page(page)

    async def get_user_listings(
        self,
        db: AsyncSession,
        seller_id: str,
        item: str | None,
        currency: str | None,
        listed_from: datetime | None,
        listed_to: datetime | None,
        cursor: str | None,
        limit: int | None,
    ) -> ListingListResponse:
        page = await self._engine.get_user_listings(
            db,
            ListingFilter(
                item=item,
                currency=currency,
                listed_from=ensure_utc(listed_from),
                listed_to=ensure_utc(listed_to),
                seller_id=seller_id,
                cursor=cursor,
                limit=limit,
            ),
        )
        return ListingListResponse.from_page(page)
