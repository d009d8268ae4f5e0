import pytest

from src.pm_common.datetime_utils import utc_now
from src.pm_trade.domain.invariants import verify_listing_invariants
from src.pm_trade.domain.models import Listing, Purchase


def _listing(amount: int, status: str, bought: list[int], listed: int = 10) -> Listing:
    return Listing(
        id="L1",
        seller_id="s",
        item="Candy",
        amount=amount,
        listed_amount=listed,
        price=5,
        currency="xCookies",
        status=status,
        listed_at=utc_now(),
        purchases=[Purchase(buyer_id="b", amount=n, purchased_at=utc_now()) for n in bought],
    )


class TestListingInvariants:
    def test_fresh_listing(self) -> None:
        verify_listing_invariants(_listing(10, "ACTIVE", []))

    def test_partially_sold(self) -> None:
        verify_listing_invariants(_listing(6, "ACTIVE", [4]))

    def test_sold_out(self) -> None:
        verify_listing_invariants(_listing(0, "SOLD", [4, 6]))

    def test_cancelled_keeps_returned_amount(self) -> None:
        verify_listing_invariants(_listing(5, "COMPLETED", [2, 3]))

    def test_negative_amount(self) -> None:
        with pytest.raises(AssertionError, match="negative amount"):
            verify_listing_invariants(_listing(-1, "ACTIVE", [11]))

    def test_active_with_nothing_left(self) -> None:
        with pytest.raises(AssertionError, match="status=ACTIVE"):
            verify_listing_invariants(_listing(0, "ACTIVE", [10]))

    def test_sold_with_units_left(self) -> None:
        with pytest.raises(AssertionError, match="status=SOLD"):
            verify_listing_invariants(_listing(3, "SOLD", [7]))

    def test_oversold(self) -> None:
        with pytest.raises(AssertionError, match="sold 11 > listed 10"):
            verify_listing_invariants(_listing(0, "SOLD", [5, 6]))

    def test_lost_units(self) -> None:
        with pytest.raises(AssertionError, match="!= listed"):
            verify_listing_invariants(_listing(5, "ACTIVE", [4]))

    def test_empty_purchase(self) -> None:
        with pytest.raises(AssertionError, match="non-positive"):
            verify_listing_invariants(_listing(10, "ACTIVE", [0]))
