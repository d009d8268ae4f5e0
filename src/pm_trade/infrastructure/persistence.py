"""ListingRepository: raw SQL persistence implementation.

A listing and its purchases are one aggregate: purchases live in a JSONB
array on the listing row and are rewritten together with it. Writes are
guarded by the ``version`` column (optimistic concurrency).
"""
import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.errors import ConcurrentUpdateError
from src.pm_trade.domain.models import Listing, Purchase

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, seller_id, item, amount, listed_amount, price, currency,
    status, listed_at, purchases, version
"""

_INSERT_LISTING_SQL = text("""
    INSERT INTO trade_listings (id, seller_id, item, amount, listed_amount,
        price, currency, status, listed_at, purchases, version)
    VALUES (:id, :seller_id, :item, :amount, :listed_amount,
        :price, :currency, :status, :listed_at, CAST(:purchases AS JSONB), 0)
""")

_SAVE_LISTING_SQL = text(f"""
    UPDATE trade_listings
    SET amount = :amount,
        status = :status,
        purchases = CAST(:purchases AS JSONB),
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND version = :version
    RETURNING {_SELECT_COLUMNS}
""")

_GET_LISTING_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM trade_listings WHERE id = :id
""")

_COUNT_BY_SELLER_SQL = text("""
    SELECT COUNT(*)
    FROM trade_listings
    WHERE seller_id = :seller_id
      AND status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ','))
""")

_SEARCH_LISTINGS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM trade_listings
    WHERE status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ','))
      AND (CAST(:item AS TEXT) IS NULL OR item = :item)
      AND (CAST(:currency AS TEXT) IS NULL OR currency = :currency)
      AND (CAST(:seller_id AS TEXT) IS NULL OR seller_id = :seller_id)
      AND (CAST(:listed_from AS TIMESTAMPTZ) IS NULL OR listed_at >= :listed_from)
      AND (CAST(:listed_to AS TIMESTAMPTZ) IS NULL OR listed_at <= :listed_to)
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR listed_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              listed_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND id < CAST(:cursor_id AS TEXT)
          )
      )
    ORDER BY listed_at DESC, id DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _purchases_json(listing: Listing) -> str:
    return json.dumps([p.to_document() for p in listing.purchases])


def _row_to_listing(row: Any) -> Listing:
    """Convert a DB result row to a Listing domain object."""
    purchases = row.purchases
    if isinstance(purchases, str):
        purchases = json.loads(purchases)
    return Listing(
        id=row.id,
        seller_id=row.seller_id,
        item=row.item,
        amount=row.amount,
        listed_amount=row.listed_amount,
        price=row.price,
        currency=row.currency,
        status=row.status,
        listed_at=row.listed_at,
        purchases=[Purchase.from_document(p) for p in purchases or []],
        version=row.version,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    """Concrete implementation of ListingRepositoryProtocol using raw SQL."""

    async def get_by_id(self, db: AsyncSession, listing_id: str) -> Listing | None:
        result = await db.execute(_GET_LISTING_BY_ID_SQL, {"id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def insert(self, db: AsyncSession, listing: Listing) -> None:
        await db.execute(
            _INSERT_LISTING_SQL,
            {
                "id": listing.id,
                "seller_id": listing.seller_id,
                "item": listing.item,
                "amount": listing.amount,
                "listed_amount": listing.listed_amount,
                "price": listing.price,
                "currency": listing.currency,
                "status": listing.status,
                "listed_at": listing.listed_at,
                "purchases": _purchases_json(listing),
            },
        )

    async def save(self, db: AsyncSession, listing: Listing) -> Listing:
        result = await db.execute(
            _SAVE_LISTING_SQL,
            {
                "id": listing.id,
                "amount": listing.amount,
                "status": listing.status,
                "purchases": _purchases_json(listing),
                "version": listing.version,
            },
        )
        row = result.fetchone()
        if row is None:
            raise ConcurrentUpdateError("listing", listing.id)
        return _row_to_listing(row)

    async def count_by_seller(
        self, db: AsyncSession, seller_id: str, statuses: list[str]
    ) -> int:
        result = await db.execute(
            _COUNT_BY_SELLER_SQL,
            {"seller_id": seller_id, "statuses_csv": ",".join(statuses)},
        )
        return int(result.scalar_one())

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
    ) -> list[Listing]:
        result = await db.execute(
            _SEARCH_LISTINGS_SQL,
            {
                "statuses_csv": ",".join(statuses),
                "item": item,
                "currency": currency,
                "seller_id": seller_id,
                "listed_from": listed_from,
                "listed_to": listed_to,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        rows = result.fetchall()
        return [_row_to_listing(row) for row in rows]
