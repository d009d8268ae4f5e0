"""Global enums: must match DB CHECK constraints exactly.

See alembic/versions for the constraint definitions.
"""

from enum import Enum


class ListingStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"            # amount == 0, proceeds may still be unclaimed
    COMPLETED = "COMPLETED"  # archival: claimed out or cancelled


class TradeCurrency(str, Enum):
    X_COOKIES = "xCookies"


class InventoryBucket(str, Enum):
    """Top-level keys of the accounts.inventory JSONB document."""
    FOODS = "foods"
    ITEMS = "items"


class LedgerEntryType(str, Enum):
    TRADE_PURCHASE = "TRADE_PURCHASE"  # buyer pays for a listing purchase
    TRADE_PROCEEDS = "TRADE_PROCEEDS"  # seller claims purchase proceeds


class ResultStatus(str, Enum):
    """Coarse outcome carried in every API envelope."""
    SUCCESS = "SUCCESS"
    BAD_REQUEST = "BAD_REQUEST"
    ERROR = "ERROR"
