"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account / balance
  3xxx: Auction
  4xxx: Bid
  9xxx: System

Rejections that the caller can fix by retrying with different numbers carry
them in ``details`` (``minimum_bid``, ``required_balance``, ``current_balance``).
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Admin privileges required", 403)


# --- 2xxx: Account / balance ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            422,
            {"required_balance": required, "current_balance": available},
        )


class BidderNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Bidder account not found: {user_id}", 404)


class HoldReleaseError(AppError):
    def __init__(self, user_id: str, amount: int) -> None:
        super().__init__(
            2003, f"Cannot release hold of {amount} for user {user_id}", 500
        )


class InsufficientBalanceForMaxBidError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2004,
            f"Insufficient balance for max bid amount: required {required}, "
            f"available {available}",
            422,
            {"required_balance": required, "current_balance": available},
        )


# --- 3xxx: Auction ---

class AuctionNotFoundError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(3001, f"Auction not found: {auction_id}", 404)


class AuctionNotAcceptingBidsError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(3002, f"Auction is not accepting bids: {auction_id}", 422)


class InvalidAuctionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid auction: {detail}", 422)


class InvalidStateTransitionError(AppError):
    def __init__(self, auction_id: str, from_status: str, to_status: str) -> None:
        super().__init__(
            3004,
            f"Auction {auction_id} cannot move from {from_status} to {to_status}",
            422,
        )


class AuctionHasBidsError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(
            3005, f"Auction {auction_id} has bids; cancel or delete is not allowed", 422
        )


class BuyNowNotAvailableError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(3006, f"Buy it now is not available for auction {auction_id}", 422)


# --- 4xxx: Bid ---

class SelfBiddingNotAllowedError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "You cannot bid on your own auction", 422)


class BidTooLowError(AppError):
    def __init__(self, amount: int, minimum_bid: int) -> None:
        super().__init__(
            4002,
            f"Bid amount {amount} is below the minimum bid {minimum_bid}",
            422,
            {"minimum_bid": minimum_bid},
        )


class InvalidMaxBidAmountError(AppError):
    def __init__(self, amount: int, max_bid_amount: int | None) -> None:
        super().__init__(
            4003,
            f"Max bid amount {max_bid_amount} must be at least the bid amount {amount}",
            422,
            {"minimum_max_bid": amount},
        )


class BidNotFoundError(AppError):
    def __init__(self, bid_id: str) -> None:
        super().__init__(4004, f"Bid not found: {bid_id}", 404)


class NotAutoBidError(AppError):
    def __init__(self, bid_id: str) -> None:
        super().__init__(4005, f"Bid {bid_id} is not an auto-bid", 422)


class BidAccessDeniedError(AppError):
    def __init__(self) -> None:
        super().__init__(4006, "You can only manage your own bids", 403)


class MaxBidTooLowError(AppError):
    def __init__(self, max_bid_amount: int, current_price: int) -> None:
        super().__init__(
            4007,
            f"Max bid amount {max_bid_amount} must not be below the current price "
            f"{current_price}",
            422,
            {"current_price": current_price},
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ConcurrentModificationError(AppError):
    def __init__(self, entity_id: str) -> None:
        super().__init__(
            9003, f"Concurrent modification detected on {entity_id}, retry later", 409
        )


class InvalidRequestError(AppError):
    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__(9004, "Request validation failed", 422, {"errors": errors})
