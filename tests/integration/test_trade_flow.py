"""End-to-end listing lifecycle against PostgreSQL.

Pre-condition: alembic upgrade head, RUN_INTEGRATION=1.
"""

import asyncio
import uuid

import pytest
from httpx import AsyncClient

from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_common.database import async_session_factory
from src.pm_gateway.auth.jwt_handler import create_access_token

pytestmark = pytest.mark.asyncio(loop_scope="session")

BASE = "/api/v1/trade/listings"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def seed_account(
    balance: int = 0, foods: dict[str, int] | None = None
) -> tuple[str, dict[str, str]]:
    """Create a fresh account row and return (user_id, auth headers)."""
    user_id = f"it_{uuid.uuid4().hex[:12]}"
    repo = AccountRepository()
    async with async_session_factory() as db:
        account = await repo.create_account(db, user_id, balance)
        for item, qty in (foods or {}).items():
            account.inventory.credit(item, qty)
        await repo.save_account(db, account)
        await db.commit()
    return user_id, {"Authorization": f"Bearer {create_access_token(user_id)}"}


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestListingLifecycle:
    async def test_list_buy_claim(self, client: AsyncClient) -> None:
        _, seller = await seed_account(foods={"Candy": 10})
        _, buyer = await seed_account(balance=100)

        resp = await client.post(
            BASE, json={"item": "Candy", "amount": 10, "price": 5}, headers=seller
        )
        assert resp.status_code == 200
        listing_id = resp.json()["data"]["id"]

        resp = await client.post(
            f"{BASE}/{listing_id}/purchase", json={"amount": 10}, headers=buyer
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["listing"]["status"] == "SOLD"

        mine = (await client.get(f"{BASE}/mine", headers=seller)).json()["data"]
        assert [i["id"] for i in mine["items"]] == [listing_id]

        resp = await client.post(f"{BASE}/{listing_id}/claim", headers=seller)
        assert resp.json()["data"]["proceeds"] == 50
        assert resp.json()["data"]["listing"]["status"] == "COMPLETED"

        balance = (await client.get("/api/v1/account/balance", headers=seller)).json()
        assert balance["data"]["current_balance"] == 50

        ledger = (await client.get("/api/v1/account/ledger", headers=buyer)).json()
        assert ledger["data"]["items"][0]["amount"] == -50

    async def test_cancel_returns_stock(self, client: AsyncClient) -> None:
        _, seller = await seed_account(foods={"Juice": 4})

        resp = await client.post(
            BASE, json={"item": "Juice", "amount": 4, "price": 1}, headers=seller
        )
        listing_id = resp.json()["data"]["id"]
        resp = await client.post(f"{BASE}/{listing_id}/cancel", headers=seller)
        assert resp.json()["data"]["returned_amount"] == 4

        inventory = (await client.get("/api/v1/account/inventory", headers=seller)).json()
        assert inventory["data"]["foods"]["Juice"] == 4

    async def test_racing_buyers_do_not_oversell(self, client: AsyncClient) -> None:
        _, seller = await seed_account(foods={"Burger": 5})
        buyers = [(await seed_account(balance=10))[1] for _ in range(2)]

        resp = await client.post(
            BASE, json={"item": "Burger", "amount": 5, "price": 1}, headers=seller
        )
        listing_id = resp.json()["data"]["id"]

        results = await asyncio.gather(
            *(
                client.post(f"{BASE}/{listing_id}/purchase", json={"amount": 3}, headers=b)
                for b in buyers
            )
        )

        assert sorted(r.status_code for r in results) == [200, 400]
        listing = (await client.get(f"{BASE}/{listing_id}", headers=seller)).json()["data"]
        assert listing["amount"] == 2
