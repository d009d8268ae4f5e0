"""Listing invariant verification, run on every listing before it is written."""

import logging

from src.pm_common.enums import ListingStatus
from src.pm_trade.domain.models import Listing

logger = logging.getLogger(__name__)


def verify_listing_invariants(listing: Listing) -> None:
    """Raise AssertionError if the listing aggregate is inconsistent.

    - amount never negative
    - an open listing is SOLD exactly when nothing remains
    - purchases never exceed what was listed, and sold + remaining == listed
    - every purchase is for at least one unit
    """
    lid = listing.id
    assert listing.amount >= 0, f"listing {lid}: negative amount {listing.amount}"

    if listing.is_open:
        sold_out = listing.amount == 0
        assert (listing.status == ListingStatus.SOLD) == sold_out, (
            f"listing {lid}: status={listing.status} with amount={listing.amount}"
        )

    sold = listing.sold_amount
    assert sold <= listing.listed_amount, (
        f"listing {lid}: sold {sold} > listed {listing.listed_amount}"
    )
    assert sold + listing.amount == listing.listed_amount, (
        f"listing {lid}: sold {sold} + remaining {listing.amount} "
        f"!= listed {listing.listed_amount}"
    )
    assert all(p.amount > 0 for p in listing.purchases), (
        f"listing {lid}: purchase with non-positive amount"
    )

    logger.debug(
        "Invariants OK: listing=%s, status=%s, remaining=%d, sold=%d",
        lid, listing.status, listing.amount, sold,
    )
