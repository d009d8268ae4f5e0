"""Unit tests for ListingRepository and AccountRepository using MagicMock AsyncSession."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_account.domain.models import Account
from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_common.errors import ConcurrentUpdateError
from src.pm_trade.domain.models import Listing, Purchase
from src.pm_trade.infrastructure.persistence import ListingRepository

_TS = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_listing_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", "0000000000000000007")
    row.seller_id = "seller-1"
    row.item = "Candy"
    row.amount = kwargs.get("amount", 6)
    row.listed_amount = 10
    row.price = 5
    row.currency = "xCookies"
    row.status = kwargs.get("status", "ACTIVE")
    row.listed_at = _TS
    row.purchases = kwargs.get(
        "purchases",
        [{"buyer_id": "b1", "amount": 4, "purchased_at": _TS.isoformat(), "claimed": False}],
    )
    row.version = kwargs.get("version", 1)
    return row


def _make_account_row(inventory):
    row = MagicMock()
    row.user_id = "user-1"
    row.current_balance = 100
    row.total_spent = 0
    row.period_spent = 0
    row.inventory = inventory
    row.version = 2
    row.created_at = _TS
    row.updated_at = _TS
    return row


def _result(fetchone=None, fetchall=None):
    result = MagicMock()
    result.fetchone.return_value = fetchone
    result.fetchall.return_value = fetchall or []
    return result


@pytest.fixture
def db():
    return MagicMock()


class TestListingRepository:
    async def test_get_by_id_maps_purchases(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=_make_listing_row()))

        listing = await ListingRepository().get_by_id(db, "0000000000000000007")

        assert listing is not None
        assert listing.amount == 6
        assert listing.purchases == [
            Purchase(buyer_id="b1", amount=4, purchased_at=_TS, claimed=False)
        ]
        assert listing.version == 1

    async def test_purchases_as_json_text(self, db) -> None:
        row = _make_listing_row(purchases=json.dumps([]))
        db.execute = AsyncMock(return_value=_result(fetchone=row))

        listing = await ListingRepository().get_by_id(db, row.id)

        assert listing is not None
        assert listing.purchases == []

    async def test_get_by_id_missing(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        assert await ListingRepository().get_by_id(db, "nope") is None

    async def test_save_sends_version_and_purchases(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=_make_listing_row(version=4)))
        listing = Listing(
            id="0000000000000000007",
            seller_id="seller-1",
            item="Candy",
            amount=6,
            listed_amount=10,
            price=5,
            currency="xCookies",
            status="ACTIVE",
            listed_at=_TS,
            purchases=[Purchase(buyer_id="b1", amount=4, purchased_at=_TS)],
            version=3,
        )

        saved = await ListingRepository().save(db, listing)

        params = db.execute.await_args.args[1]
        assert params["version"] == 3
        assert json.loads(params["purchases"])[0]["amount"] == 4
        assert saved.version == 4

    async def test_save_zero_rows_is_a_conflict(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        row_listing = Listing(
            id="L1", seller_id="s", item="Candy", amount=1, listed_amount=1,
            price=1, currency="xCookies", status="ACTIVE", listed_at=_TS,
        )
        with pytest.raises(ConcurrentUpdateError):
            await ListingRepository().save(db, row_listing)

    async def test_count_by_seller(self, db) -> None:
        result = MagicMock()
        result.scalar_one.return_value = 4
        db.execute = AsyncMock(return_value=result)

        count = await ListingRepository().count_by_seller(db, "seller-1", ["ACTIVE", "SOLD"])

        assert count == 4
        assert db.execute.await_args.args[1]["statuses_csv"] == "ACTIVE,SOLD"

    async def test_search(self, db) -> None:
        rows = [_make_listing_row(id=f"000000000000000000{i}") for i in range(3)]
        db.execute = AsyncMock(return_value=_result(fetchall=rows))

        listings = await ListingRepository().search(
            db, ["ACTIVE"], "Candy", None, None, None, None, None, None, 3
        )

        assert [lst.id for lst in listings] == [r.id for r in rows]
        params = db.execute.await_args.args[1]
        assert params["item"] == "Candy"
        assert params["limit"] == 3


class TestAccountRepository:
    async def test_inventory_document(self, db) -> None:
        row = _make_account_row({"foods": {"Juice": 1}, "items": {}})
        db.execute = AsyncMock(return_value=_result(fetchone=row))

        account = await AccountRepository().get_account(db, "user-1")

        assert account is not None
        assert account.inventory.quantity("Juice") == 1
        assert account.version == 2

    async def test_inventory_as_json_text(self, db) -> None:
        row = _make_account_row(json.dumps({"items": {"Hat": 3}}))
        db.execute = AsyncMock(return_value=_result(fetchone=row))

        account = await AccountRepository().get_account(db, "user-1")

        assert account is not None
        assert account.inventory.to_document() == {"foods": {}, "items": {"Hat": 3}}

    async def test_save_zero_rows_is_a_conflict(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        account = Account(user_id="user-1", current_balance=1, total_spent=0, period_spent=0)

        with pytest.raises(ConcurrentUpdateError) as exc_info:
            await AccountRepository().save_account(db, account)
        assert exc_info.value.entity == "account"

    async def test_save_serializes_inventory(self, db) -> None:
        db.execute = AsyncMock(
            return_value=_result(fetchone=_make_account_row({"foods": {}, "items": {}}))
        )
        account = Account(user_id="user-1", current_balance=1, total_spent=0, period_spent=0)
        account.inventory.credit("Burger", 2)

        await AccountRepository().save_account(db, account)

        params = db.execute.await_args.args[1]
        assert json.loads(params["inventory"]) == {"foods": {"Burger": 2}, "items": {}}
        assert params["version"] == 0
