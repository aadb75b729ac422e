from datetime import datetime

from src.au_auction.domain.models import Auction
from src.au_auction.domain.state_machine import can_accept_bids
from src.au_common.errors import AuctionNotAcceptingBidsError, AuctionNotFoundError


def check_auction_accepting_bids(
    auction: Auction | None, auction_id: str, now: datetime
) -> Auction:
    """Raise if the auction is missing, not ACTIVE, outside its window, or already won."""
    if auction is None:
        raise AuctionNotFoundError(auction_id)
    if not can_accept_bids(auction, now):
        raise AuctionNotAcceptingBidsError(auction.id)
    return auction
