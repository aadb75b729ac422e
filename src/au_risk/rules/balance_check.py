"""Balance coverage checks for bid holds.

Read-only: the hold itself is taken by the balance store's atomic UPDATE once
the bid is accepted. These checks only reject early with the numbers a client
needs to retry.
"""

from src.au_account.domain.models import Account
from src.au_common.amounts import hold_amount
from src.au_common.errors import (
    BidderNotFoundError,
    InsufficientBalanceError,
    InsufficientBalanceForMaxBidError,
)


def check_bidder_account(account: Account | None, bidder_id: str) -> Account:
    if account is None:
        raise BidderNotFoundError(bidder_id)
    return account


def check_hold_coverage(account: Account, amount: int) -> int:
    """Return the hold for ``amount`` or raise InsufficientBalanceError."""
    if not account.covers_hold(amount):
        raise InsufficientBalanceError(hold_amount(amount), account.available_balance)
    return hold_amount(amount)


def check_max_bid_coverage(account: Account, max_bid_amount: int) -> int:
    if not account.covers_hold(max_bid_amount):
        raise InsufficientBalanceForMaxBidError(
            hold_amount(max_bid_amount), account.available_balance
        )
    return hold_amount(max_bid_amount)
