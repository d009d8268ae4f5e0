"""Pydantic schemas and cursor utilities for pm_account API."""

import base64
import json

from pydantic import BaseModel

from src.pm_account.domain.models import Account

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    current_balance: int
    total_spent: int
    period_spent: int

    @classmethod
    def from_domain(cls, account: Account) -> "BalanceResponse":
        return cls(
            user_id=account.user_id,
            current_balance=account.current_balance,
            total_spent=account.total_spent,
            period_spent=account.period_spent,
        )


class InventoryResponse(BaseModel):
    user_id: str
    foods: dict[str, int]
    items: dict[str, int]

    @classmethod
    def from_domain(cls, account: Account) -> "InventoryResponse":
        doc = account.inventory.to_document()
        return cls(user_id=account.user_id, foods=doc["foods"], items=doc["items"])


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
