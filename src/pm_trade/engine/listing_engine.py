"""ListingEngine: settlement of trade listings across accounts and listings.

Every mutating operation is one transaction on the caller's session:
read the aggregates, check preconditions, mutate in memory, write back with
version guards, commit. Any error rolls the whole transaction back. A
version conflict re-runs the operation from the top (fresh reads) so that a
purchase racing another one re-checks the remaining amount.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_account.domain.models import Account
from src.pm_account.domain.repository import AccountRepositoryProtocol
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import LedgerEntryType, ListingStatus
from src.pm_common.errors import (
    AccountNotFoundError,
    ConcurrentUpdateError,
    InsufficientQuantityError,
    InvalidListingError,
    ListingLimitExceededError,
    ListingNotActiveError,
    ListingNotFoundError,
    NothingToClaimError,
    NotListingOwnerError,
    SelfTradeError,
    TransactionError,
)
from src.pm_common.id_generator import generate_id
from src.pm_trade.domain.cursor import cursor_decode, cursor_encode
from src.pm_trade.domain.invariants import verify_listing_invariants
from src.pm_trade.domain.models import (
    Listing,
    ListingFilter,
    ListingPage,
    Purchase,
    PurchaseResult,
    SettlementResult,
)
from src.pm_trade.domain.repository import ListingRepositoryProtocol
from src.pm_trade.rules.listing_request import (
    check_currency,
    check_item,
    check_price,
    check_quantity,
)
from src.pm_trade.rules.self_trade import is_self_trade

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OPEN_STATUSES = [ListingStatus.ACTIVE.value, ListingStatus.SOLD.value]
_LEDGER_REFERENCE = "LISTING"


class ListingEngine:
    def __init__(
        self,
        account_repo: AccountRepositoryProtocol,
        listing_repo: ListingRepositoryProtocol,
        max_attempts: int | None = None,
        max_open_listings: int | None = None,
        default_page_size: int | None = None,
        max_page_size: int | None = None,
    ) -> None:
        self._accounts = account_repo
        self._listings = listing_repo
        self._max_attempts = max_attempts or settings.TRADE_TX_MAX_ATTEMPTS
        self._max_open_listings = max_open_listings or settings.TRADE_MAX_OPEN_LISTINGS
        self._default_page_size = default_page_size or settings.TRADE_DEFAULT_PAGE_SIZE
        self._max_page_size = max_page_size or settings.TRADE_MAX_PAGE_SIZE

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    async def _in_transaction(
        self, op: str, db: AsyncSession, work: Callable[[], Awaitable[T]]
    ) -> T:
        last_conflict: ConcurrentUpdateError | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                result = await work()
                await db.commit()
                return result
            except ConcurrentUpdateError as exc:
                await db.rollback()
                last_conflict = exc
                logger.warning(
                    "%s: concurrent update on %s %s (attempt %d/%d)",
                    op, exc.entity, exc.entity_id, attempt, self._max_attempts,
                )
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.exception("%s: transaction aborted by the database", op)
                raise TransactionError(f"{op} aborted: {exc.__class__.__name__}") from exc
            except Exception:
                await db.rollback()
                raise
        raise TransactionError(
            f"{op} aborted after {self._max_attempts} conflicting attempts"
        ) from last_conflict

    async def _require_account(self, db: AsyncSession, user_id: str) -> Account:
        account = await self._accounts.get_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    async def _require_listing(self, db: AsyncSession, listing_id: str) -> Listing:
        listing = await self._listings.get_by_id(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_listing(
        self,
        db: AsyncSession,
        seller_id: str,
        item: str,
        amount: int,
        price: int,
        currency: str,
    ) -> Listing:
        check_item(item)
        check_quantity(amount)
        check_price(price)
        check_currency(currency)

        async def work() -> Listing:
            seller = await self._require_account(db, seller_id)
            open_count = await self._listings.count_by_seller(db, seller_id, _OPEN_STATUSES)
            if open_count >= self._max_open_listings:
                raise ListingLimitExceededError(self._max_open_listings)

            seller.inventory.debit(item, amount)
            await self._accounts.save_account(db, seller)

            listing = Listing(
                id=generate_id(),
                seller_id=seller_id,
                item=item,
                amount=amount,
                listed_amount=amount,
                price=price,
                currency=currency,
                status=ListingStatus.ACTIVE.value,
                listed_at=utc_now(),
            )
            verify_listing_invariants(listing)
            await self._listings.insert(db, listing)
            return listing

        listing = await self._in_transaction("create_listing", db, work)
        logger.info(
            "Listing created: id=%s seller=%s item=%s amount=%d price=%d %s",
            listing.id, seller_id, item, amount, price, currency,
        )
        return listing

    async def purchase(
        self, db: AsyncSession, listing_id: str, buyer_id: str, amount: int
    ) -> PurchaseResult:
        check_quantity(amount)

        async def work() -> PurchaseResult:
            listing = await self._require_listing(db, listing_id)
            if listing.status != ListingStatus.ACTIVE:
                raise ListingNotActiveError(listing_id, listing.status)
            if amount > listing.amount:
                raise InsufficientQuantityError(amount, listing.amount)
            if is_self_trade(buyer_id, listing.seller_id):
                raise SelfTradeError()

            buyer = await self._require_account(db, buyer_id)
            total_cost = amount * listing.price
            buyer.spend(total_cost)
            buyer.inventory.credit(listing.item, amount)

            purchase = Purchase(buyer_id=buyer_id, amount=amount, purchased_at=utc_now())
            listing.purchases.append(purchase)
            listing.amount -= amount
            if listing.amount == 0:
                listing.status = ListingStatus.SOLD.value
            verify_listing_invariants(listing)

            # Listing first: it is the contended record.
            saved = await self._listings.save(db, listing)
            buyer = await self._accounts.save_account(db, buyer)
            if total_cost:
                await self._accounts.add_ledger_entry(
                    db,
                    user_id=buyer_id,
                    entry_type=LedgerEntryType.TRADE_PURCHASE.value,
                    amount=-total_cost,
                    balance_after=buyer.current_balance,
                    reference_type=_LEDGER_REFERENCE,
                    reference_id=listing_id,
                    description=f"Bought {amount} x {listing.item}",
                )
            return PurchaseResult(
                listing=saved,
                purchase=purchase,
                total_cost=total_cost,
                buyer_balance=buyer.current_balance,
            )

        result = await self._in_transaction("purchase", db, work)
        logger.info(
            "Listing purchased: id=%s buyer=%s amount=%d cost=%d remaining=%d",
            listing_id, buyer_id, amount, result.total_cost, result.listing.amount,
        )
        return result

    @staticmethod
    def _collect_proceeds(listing: Listing, seller: Account) -> int:
        """Mark every unclaimed purchase claimed and credit the seller. Returns units claimed."""
        claimed = 0
        for purchase in listing.purchases:
            if not purchase.claimed:
                purchase.claimed = True
                claimed += purchase.amount
        seller.earn(claimed * listing.price)
        return claimed

    async def _write_settlement(
        self,
        db: AsyncSession,
        listing: Listing,
        seller: Account,
        claimed: int,
        returned: int,
    ) -> SettlementResult:
        verify_listing_invariants(listing)
        saved = await self._listings.save(db, listing)
        seller = await self._accounts.save_account(db, seller)
        proceeds = claimed * listing.price
        if proceeds:
            await self._accounts.add_ledger_entry(
                db,
                user_id=seller.user_id,
                entry_type=LedgerEntryType.TRADE_PROCEEDS.value,
                amount=proceeds,
                balance_after=seller.current_balance,
                reference_type=_LEDGER_REFERENCE,
                reference_id=listing.id,
                description=f"Sold {claimed} x {listing.item}",
            )
        return SettlementResult(
            listing=saved,
            claimed_amount=claimed,
            proceeds=proceeds,
            seller_balance=seller.current_balance,
            returned_amount=returned,
        )

    async def claim(
        self, db: AsyncSession, listing_id: str, seller_id: str
    ) -> SettlementResult:
        async def work() -> SettlementResult:
            listing = await self._require_listing(db, listing_id)
            if listing.seller_id != seller_id:
                raise NotListingOwnerError(listing_id)
            # Checked before status so a repeated claim on a completed
            # listing reports NothingToClaim, same as on an active one.
            if listing.unclaimed_amount == 0:
                raise NothingToClaimError(listing_id)
            if listing.status == ListingStatus.COMPLETED:
                raise ListingNotActiveError(listing_id, listing.status)

            seller = await self._require_account(db, seller_id)
            claimed = self._collect_proceeds(listing, seller)
            # Every listed unit sold and now claimed: nothing left to settle.
            if listing.amount == 0:
                listing.status = ListingStatus.COMPLETED.value
            return await self._write_settlement(db, listing, seller, claimed, returned=0)

        result = await self._in_transaction("claim", db, work)
        logger.info(
            "Listing claimed: id=%s seller=%s units=%d proceeds=%d status=%s",
            listing_id, seller_id, result.claimed_amount, result.proceeds,
            result.listing.status,
        )
        return result

    async def cancel(
        self, db: AsyncSession, listing_id: str, seller_id: str
    ) -> SettlementResult:
        async def work() -> SettlementResult:
            listing = await self._require_listing(db, listing_id)
            if listing.seller_id != seller_id:
                raise NotListingOwnerError(listing_id)
            if listing.status != ListingStatus.ACTIVE:
                raise ListingNotActiveError(listing_id, listing.status)

            seller = await self._require_account(db, seller_id)
            claimed = self._collect_proceeds(listing, seller)
            # Unsold units go back to the seller; listing.amount keeps the
            # figure as an archival record of what was returned.
            returned = listing.amount
            if returned:
                seller.inventory.credit(listing.item, returned)
            listing.status = ListingStatus.COMPLETED.value
            return await self._write_settlement(db, listing, seller, claimed, returned)

        result = await self._in_transaction("cancel", db, work)
        logger.info(
            "Listing cancelled: id=%s seller=%s units_claimed=%d proceeds=%d returned=%d",
            listing_id, seller_id, result.claimed_amount, result.proceeds,
            result.returned_amount,
        )
        return result

    # ------------------------------------------------------------------
    # Queries (read-only, default read consistency)
    # ------------------------------------------------------------------

    async def get_listing(self, db: AsyncSession, listing_id: str) -> Listing:
        return await self._require_listing(db, listing_id)

    async def get_listings(self, db: AsyncSession, flt: ListingFilter) -> ListingPage:
        """Active listings, newest first."""
        return await self._page(db, flt, [ListingStatus.ACTIVE.value])

    async def get_user_listings(self, db: AsyncSession, flt: ListingFilter) -> ListingPage:
        """A seller's listings that still need attention (ACTIVE or SOLD)."""
        if not flt.seller_id:
            raise InvalidListingError("seller_id is required")
        return await self._page(db, flt, _OPEN_STATUSES)

    async def _page(
        self, db: AsyncSession, flt: ListingFilter, statuses: list[str]
    ) -> ListingPage:
        limit = flt.limit if flt.limit is not None else self._default_page_size
        if limit < 1:
            raise InvalidListingError(f"limit must be at least 1, got {limit}")
        limit = min(limit, self._max_page_size)

        if flt.seller_id is not None:
            await self._require_account(db, flt.seller_id)

        cursor_ts, cursor_id = cursor_decode(flt.cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        rows = await self._listings.search(
            db,
            statuses=statuses,
            item=flt.item,
            currency=flt.currency,
            listed_from=flt.listed_from,
            listed_to=flt.listed_to,
            seller_id=flt.seller_id,
            cursor_ts=cursor_ts,
            cursor_id=cursor_id,
            limit=limit + 1,
        )
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return ListingPage(listings=page, next_cursor=next_cursor, has_more=has_more)
