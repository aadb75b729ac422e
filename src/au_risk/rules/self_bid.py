from src.au_auction.domain.models import Auction
from src.au_common.errors import SelfBiddingNotAllowedError


def is_self_bid(auction: Auction, bidder_id: str) -> bool:
    return str(auction.seller_id) == str(bidder_id)


def check_not_self_bid(auction: Auction, bidder_id: str) -> None:
    if is_self_bid(auction, bidder_id):
        raise SelfBiddingNotAllowedError()
