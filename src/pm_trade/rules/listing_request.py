from src.pm_common.enums import TradeCurrency
from src.pm_common.errors import InvalidListingError

SUPPORTED_CURRENCIES: frozenset[str] = frozenset(c.value for c in TradeCurrency)
MAX_QUANTITY = 2**31 - 1  # amount columns are INTEGER


def check_quantity(quantity: int) -> None:
    """Raise InvalidListingError if quantity is outside 1..MAX_QUANTITY."""
    if quantity < 1:
        raise InvalidListingError(f"amount must be at least 1, got {quantity}")
    if quantity > MAX_QUANTITY:
        raise InvalidListingError(f"amount must be at most {MAX_QUANTITY}, got {quantity}")


def check_price(price: int) -> None:
    """Raise InvalidListingError on a negative unit price. Zero-price giveaways are allowed."""
    if price < 0:
        raise InvalidListingError(f"price must be non-negative, got {price}")


def check_currency(currency: str) -> None:
    if currency not in SUPPORTED_CURRENCIES:
        raise InvalidListingError(f"unsupported currency {currency!r}")


def check_item(item: str) -> None:
    if not item or not item.strip():
        raise InvalidListingError("item must be a non-empty name")
