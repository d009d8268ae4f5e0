"""Unit tests for AccountApplicationService using a mock repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_account.application.schemas import (
    BalanceResponse,
    InventoryResponse,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.pm_account.application.service import AccountApplicationService
from src.pm_account.domain.inventory import Inventory
from src.pm_account.domain.models import Account, LedgerEntry
from src.pm_common.errors import AccountNotFoundError


def _make_account(balance: int = 500) -> Account:
    return Account(
        user_id="user-1",
        current_balance=balance,
        total_spent=120,
        period_spent=20,
        inventory=Inventory.from_document({"foods": {"Juice": 2}, "items": {"Hat": 1}}),
        version=3,
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )


def _make_ledger_entry(entry_id: int, amount: int = -20) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        user_id="user-1",
        entry_type="TRADE_PURCHASE",
        amount=amount,
        balance_after=480,
        reference_type="LISTING",
        reference_id="L1",
        description="Bought 4 x Candy",
        created_at=datetime.now(UTC),
    )


class TestGetBalance:
    async def test_returns_balance_response(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account.return_value = _make_account(500)
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.get_balance(MagicMock(), "user-1")

        assert isinstance(result, BalanceResponse)
        assert result.current_balance == 500
        assert result.total_spent == 120
        assert result.period_spent == 20

    async def test_unknown_account(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account.return_value = None
        svc = AccountApplicationService(repo=mock_repo)

        with pytest.raises(AccountNotFoundError):
            await svc.get_balance(MagicMock(), "ghost")


class TestGetInventory:
    async def test_splits_buckets(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account.return_value = _make_account()
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.get_inventory(MagicMock(), "user-1")

        assert isinstance(result, InventoryResponse)
        assert result.foods == {"Juice": 2}
        assert result.items == {"Hat": 1}


class TestListLedger:
    async def test_has_more_and_cursor(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.list_ledger_entries.return_value = [
            _make_ledger_entry(i) for i in (9, 8, 7)
        ]
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.list_ledger(MagicMock(), "user-1", None, 2, None)

        assert isinstance(result, LedgerResponse)
        assert [item.id for item in result.items] == [9, 8]
        assert result.has_more is True
        assert cursor_decode(result.next_cursor) == 8
        args = mock_repo.list_ledger_entries.await_args.args
        assert args[2:] == (None, 3, None)

    async def test_last_page(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.list_ledger_entries.return_value = [_make_ledger_entry(1, amount=50)]
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.list_ledger(
            MagicMock(), "user-1", cursor_encode(2), 10, "TRADE_PROCEEDS"
        )

        assert result.has_more is False
        assert result.next_cursor is None
        assert result.items[0].amount == 50
        args = mock_repo.list_ledger_entries.await_args.args
        assert args[2] == 2
        assert args[4] == "TRADE_PROCEEDS"
