"""AccountRepository: concrete implementation of AccountRepositoryProtocol.

Accounts are written back as a whole aggregate (balance, spent counters and
the inventory JSONB document) guarded by the ``version`` column. A versioned
UPDATE that matches zero rows means another transaction committed first.

Transaction ownership: The CALLER (engine or application service) is
responsible for committing or rolling back.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.inventory import Inventory
from src.pm_account.domain.models import Account, LedgerEntry
from src.pm_common.errors import ConcurrentUpdateError, InternalError

_ACCOUNT_COLUMNS = """
    user_id, current_balance, total_spent, period_spent,
    inventory, version, created_at, updated_at
"""

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_INSERT_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (user_id, current_balance, inventory)
    VALUES (:user_id, :balance, CAST(:inventory AS JSONB))
    RETURNING {_ACCOUNT_COLUMNS}
""")

_SAVE_ACCOUNT_SQL = text(f"""
    UPDATE accounts
    SET current_balance = :current_balance,
        total_spent     = :total_spent,
        period_spent    = :period_spent,
        inventory       = CAST(:inventory AS JSONB),
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND version = :version
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: Any) -> Account:
    inventory = row.inventory
    if isinstance(inventory, str):
        inventory = json.loads(inventory)
    return Account(
        user_id=row.user_id,
        current_balance=row.current_balance,
        total_spent=row.total_spent,
        period_spent=row.period_spent,
        inventory=Inventory.from_document(inventory),
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        amount=row.amount,
        balance_after=row.balance_after,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        description=row.description,
        created_at=row.created_at,
    )


class AccountRepository:
    """Concrete repository: raw SQL, caller-owned transaction."""

    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def create_account(
        self, db: AsyncSession, user_id: str, balance: int = 0
    ) -> Account:
        result = await db.execute(
            _INSERT_ACCOUNT_SQL,
            {
                "user_id": user_id,
                "balance": balance,
                "inventory": json.dumps(Inventory().to_document()),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows: this should never happen")
        return _row_to_account(row)

    async def save_account(self, db: AsyncSession, account: Account) -> Account:
        result = await db.execute(
            _SAVE_ACCOUNT_SQL,
            {
                "user_id": account.user_id,
                "current_balance": account.current_balance,
                "total_spent": account.total_spent,
                "period_spent": account.period_spent,
                "inventory": json.dumps(account.inventory.to_document()),
                "version": account.version,
            },
        )
        row = result.fetchone()
        if row is None:
            raise ConcurrentUpdateError("account", account.user_id)
        return _row_to_account(row)

    async def add_ledger_entry(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        amount: int,
        balance_after: int,
        reference_type: str | None,
        reference_id: str | None,
        description: str | None,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_after": balance_after,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows: this should never happen")
        return _row_to_ledger(row)

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        rows = result.fetchall()
        return [_row_to_ledger(row) for row in rows]
