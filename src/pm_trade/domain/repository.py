"""ListingRepository Protocol: interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_trade.domain.models import Listing


class ListingRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def insert(self, db: AsyncSession, listing: Listing) -> None: ...

    async def save(self, db: AsyncSession, listing: Listing) -> Listing:
        """Write the whole aggregate back; raises ConcurrentUpdateError on version mismatch."""
        ...

    async def count_by_seller(
        self, db: AsyncSession, seller_id: str, statuses: list[str]
    ) -> int: ...

    async def search(
        self,
        db: AsyncSession,
        statuses: list[str],
        item: str | None,
        currency: str | None,
        listed_from: datetime | None,
        listed_to: datetime | None,
        seller_id: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]: ...
