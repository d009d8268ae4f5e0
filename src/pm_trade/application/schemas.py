"""Pydantic request/response schemas for pm_trade API."""
from pydantic import BaseModel, Field

from src.pm_common.enums import TradeCurrency
from src.pm_trade.domain.models import (
    Listing,
    ListingPage,
    Purchase,
    PurchaseResult,
    SettlementResult,
)
from src.pm_trade.rules.listing_request import MAX_QUANTITY

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateListingRequest(BaseModel):
    item: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(..., ge=1, le=MAX_QUANTITY, description="Units to put up for sale")
    price: int = Field(..., ge=0, description="Price per unit")
    currency: TradeCurrency = TradeCurrency.X_COOKIES


class PurchaseListingRequest(BaseModel):
    amount: int = Field(..., ge=1, le=MAX_QUANTITY, description="Units to buy, may be partial")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class PurchaseOut(BaseModel):
    buyer_id: str
    amount: int
    purchased_at: str
    claimed: bool

    @classmethod
    def from_domain(cls, p: Purchase) -> "PurchaseOut":
        return cls(
            buyer_id=p.buyer_id,
            amount=p.amount,
            purchased_at=p.purchased_at.isoformat(),
            claimed=p.claimed,
        )


class ListingOut(BaseModel):
    id: str
    seller_id: str
    item: str
    amount: int
    listed_amount: int
    price: int
    currency: str
    status: str
    listed_at: str
    purchases: list[PurchaseOut]
    unclaimed_amount: int
    unclaimed_proceeds: int

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingOut":
        return cls(
            id=listing.id,
            seller_id=listing.seller_id,
            item=listing.item,
            amount=listing.amount,
            listed_amount=listing.listed_amount,
            price=listing.price,
            currency=listing.currency,
            status=listing.status,
            listed_at=listing.listed_at.isoformat(),
            purchases=[PurchaseOut.from_domain(p) for p in listing.purchases],
            unclaimed_amount=listing.unclaimed_amount,
            unclaimed_proceeds=listing.unclaimed_proceeds,
        )


class ListingListResponse(BaseModel):
    items: list[ListingOut]
    next_cursor: str | None
    has_more: bool

    @classmethod
    def from_page(cls, page: ListingPage) -> "ListingListResponse":
        return cls(
            items=[ListingOut.from_domain(lst) for lst in page.listings],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )


class PurchaseResponse(BaseModel):
    listing: ListingOut
    purchased_amount: int
    total_cost: int
    buyer_balance: int

    @classmethod
    def from_result(cls, result: PurchaseResult) -> "PurchaseResponse":
        return cls(
            listing=ListingOut.from_domain(result.listing),
            purchased_amount=result.purchase.amount,
            total_cost=result.total_cost,
            buyer_balance=result.buyer_balance,
        )


class SettlementResponse(BaseModel):
    listing: ListingOut
    claimed_amount: int
    proceeds: int
    seller_balance: int
    returned_amount: int

    @classmethod
    def from_result(cls, result: SettlementResult) -> "SettlementResponse":
        return cls(
            listing=ListingOut.from_domain(result.listing),
            claimed_amount=result.claimed_amount,
            proceeds=result.proceeds,
            seller_balance=result.seller_balance,
            returned_amount=result.returned_amount,
        )
