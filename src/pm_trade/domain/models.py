"""Domain models for pm_trade: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import ListingStatus


@dataclass
class Purchase:
    buyer_id: str
    amount: int
    purchased_at: datetime
    claimed: bool = False

    def to_document(self) -> dict[str, Any]:
        return {
            "buyer_id": self.buyer_id,
            "amount": self.amount,
            "purchased_at": self.purchased_at.isoformat(),
            "claimed": self.claimed,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Purchase":
        return cls(
            buyer_id=doc["buyer_id"],
            amount=int(doc["amount"]),
            purchased_at=ensure_utc(datetime.fromisoformat(doc["purchased_at"])),
            claimed=bool(doc.get("claimed", False)),
        )


@dataclass
class Listing:
    id: str
    seller_id: str
    item: str
    amount: int           # remaining unsold quantity
    listed_amount: int    # quantity at creation, never changes
    price: int            # per unit
    currency: str
    status: str
    listed_at: datetime
    purchases: list[Purchase] = field(default_factory=list)
    version: int = 0

    @property
    def sold_amount(self) -> int:
        return sum(p.amount for p in self.purchases)

    @property
    def unclaimed_amount(self) -> int:
        return sum(p.amount for p in self.purchases if not p.claimed)

    @property
    def unclaimed_proceeds(self) -> int:
        return self.unclaimed_amount * self.price

    @property
    def is_open(self) -> bool:
        return self.status != ListingStatus.COMPLETED


@dataclass
class ListingFilter:
    item: str | None = None
    currency: str | None = None
    listed_from: datetime | None = None
    listed_to: datetime | None = None
    seller_id: str | None = None
    cursor: str | None = None
    limit: int | None = None


@dataclass
class ListingPage:
    listings: list[Listing]
    next_cursor: str | None
    has_more: bool


@dataclass
class PurchaseResult:
    listing: Listing
    purchase: Purchase
    total_cost: int
    buyer_balance: int


@dataclass
class SettlementResult:
    """Outcome of claim / cancel."""

    listing: Listing
    claimed_amount: int
    proceeds: int
    seller_balance: int
    returned_amount: int = 0  # unsold units restored to inventory on cancel
