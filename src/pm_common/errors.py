"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account / inventory
  4xxx: Request validation (rendered by the app-level handler)
  6xxx: Trade listing
  9xxx: System / transaction
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            400,
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 400)


class InsufficientInventoryError(AppError):
    def __init__(self, item: str, required: int, available: int) -> None:
        super().__init__(
            2003,
            f"Insufficient inventory for {item}: required {required}, available {available}",
            400,
        )


# --- 6xxx: Trade listing ---

class ListingNotFoundError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(6001, f"Listing not found: {listing_id}", 400)


class ListingNotActiveError(AppError):
    def __init__(self, listing_id: str, status: str) -> None:
        super().__init__(6002, f"Listing {listing_id} is not active (status={status})", 400)


class InsufficientQuantityError(AppError):
    def __init__(self, requested: int, remaining: int) -> None:
        super().__init__(
            6003,
            f"Not enough quantity available: requested {requested}, remaining {remaining}",
            400,
        )


class SelfTradeError(AppError):
    def __init__(self) -> None:
        super().__init__(6004, "You cannot buy your own listing", 400)


class NothingToClaimError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(6005, f"Nothing to claim on listing {listing_id}", 400)


class NotListingOwnerError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(6006, f"Listing {listing_id} does not belong to this user", 400)


class ListingLimitExceededError(AppError):
    def __init__(self, limit: int) -> None:
        super().__init__(6007, f"Maximum open trade listings exceeded (limit={limit})", 400)


class InvalidListingError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6008, f"Invalid listing request: {detail}", 400)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class TransactionError(AppError):
    """Store-level abort: conflict, timeout or driver failure. Always rolled back."""

    def __init__(self, detail: str = "Transaction aborted", code: int = 9003) -> None:
        super().__init__(code, detail, 500)


class ConcurrentUpdateError(TransactionError):
    """A versioned UPDATE matched zero rows: the record changed since it was read."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"Concurrent update on {entity} {entity_id}", code=9004)
        self.entity = entity
        self.entity_id = entity_id
