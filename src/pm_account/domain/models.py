"""Domain models for pm_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.pm_account.domain.inventory import Inventory
from src.pm_common.errors import InsufficientBalanceError


@dataclass
class Account:
    user_id: str
    current_balance: int     # spendable currency (xCookies)
    total_spent: int
    period_spent: int        # reset by the weekly job, outside this service
    inventory: Inventory = field(default_factory=Inventory)
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def spend(self, amount: int) -> None:
        if self.current_balance < amount:
            raise InsufficientBalanceError(amount, self.current_balance)
        self.current_balance -= amount
        self.total_spent += amount
        self.period_spent += amount

    def earn(self, amount: int) -> None:
        self.current_balance += amount


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # positive=income negative=expense
    balance_after: int               # current_balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
