from src.au_auction.domain.models import Auction
from src.au_auction.domain.state_machine import next_minimum_bid
from src.au_common.errors import BidTooLowError, InvalidMaxBidAmountError


def check_bid_amount(auction: Auction, amount: int) -> None:
    """Raise BidTooLowError (carrying minimum_bid) below current_price + increment."""
    minimum = next_minimum_bid(auction)
    if amount < minimum:
        raise BidTooLowError(amount, minimum)


def check_max_bid_amount(amount: int, max_bid_amount: int | None) -> int:
    """Auto-bids need a ceiling at least as high as the opening amount."""
    if max_bid_amount is None or max_bid_amount < amount:
        raise InvalidMaxBidAmountError(amount, max_bid_amount)
    return max_bid_amount
