"""Bid acceptance rules, evaluated in a fixed order.

The first failing rule is raised; later rules are not evaluated:

    1. AuctionNotFound
    2. AuctionNotAcceptingBids
    3. SelfBiddingNotAllowed
    4. BidTooLow                      (details: minimum_bid)
    5. BidderNotFound
    6. InsufficientBalance            (details: required_balance, current_balance)
    7. auto-bid only:
       InvalidMaxBidAmount, InsufficientBalanceForMaxBid (details: required_balance)

Validation never touches the database or mutates its inputs.
"""

from datetime import datetime

from src.au_account.domain.models import Account
from src.au_auction.domain.models import Auction
from src.au_risk.rules.auction_status import check_auction_accepting_bids
from src.au_risk.rules.balance_check import (
    check_bidder_account,
    check_hold_coverage,
    check_max_bid_coverage,
)
from src.au_risk.rules.bid_amount import check_bid_amount, check_max_bid_amount
from src.au_risk.rules.self_bid import check_not_self_bid


def validate_bid(
    auction: Auction | None,
    auction_id: str,
    bidder_id: str,
    bidder_account: Account | None,
    amount: int,
    is_auto_bid: bool,
    max_bid_amount: int | None,
    now: datetime,
) -> Auction:
    """Return the auction narrowed to non-None, or raise the first failing rule."""
    found = check_auction_accepting_bids(auction, auction_id, now)
    check_not_self_bid(found, bidder_id)
    check_bid_amount(found, amount)
    account = check_bidder_account(bidder_account, bidder_id)
    check_hold_coverage(account, amount)
    if is_auto_bid:
        ceiling = check_max_bid_amount(amount, max_bid_amount)
        check_max_bid_coverage(account, ceiling)
    return found
