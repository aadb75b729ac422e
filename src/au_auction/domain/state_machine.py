"""Auction lifecycle and price state.

Pure functions over the ``Auction`` dataclass: no I/O, ``now`` is always passed
in. Callers persist the mutated auction through ``AuctionRepositoryProtocol``.

Lifecycle:
    DRAFT ──► SCHEDULED ──► ACTIVE ──► ENDED ──► SOLD
      │           │           │  └──────────────► SOLD   (buy it now)
      └───────────┴───────────┴─► CANCELLED              (zero bids only)
    DRAFT ──► ACTIVE                                     (published after start)
"""

from datetime import datetime, timedelta

from src.au_auction.domain.models import Auction
from src.au_bidding.domain.models import Bid
from src.au_common.datetime_utils import ensure_utc
from src.au_common.enums import TERMINAL_AUCTION_STATUSES, AuctionStatus
from src.au_common.errors import (
    AuctionHasBidsError,
    BidTooLowError,
    InvalidStateTransitionError,
)

_TRANSITIONS: dict[str, frozenset[str]] = {
    AuctionStatus.DRAFT: frozenset(
        {AuctionStatus.SCHEDULED, AuctionStatus.ACTIVE, AuctionStatus.CANCELLED}
    ),
    AuctionStatus.SCHEDULED: frozenset({AuctionStatus.ACTIVE, AuctionStatus.CANCELLED}),
    AuctionStatus.ACTIVE: frozenset(
        {AuctionStatus.ENDED, AuctionStatus.SOLD, AuctionStatus.CANCELLED}
    ),
    AuctionStatus.ENDED: frozenset({AuctionStatus.SOLD}),
    AuctionStatus.SOLD: frozenset(),
    AuctionStatus.CANCELLED: frozenset(),
}


def transition(auction: Auction, to_status: str) -> None:
    """Move the auction to ``to_status`` or raise InvalidStateTransitionError."""
    if to_status not in _TRANSITIONS.get(auction.status, frozenset()):
        raise InvalidStateTransitionError(
            auction.id, AuctionStatus(auction.status).value, AuctionStatus(to_status).value
        )
    auction.status = to_status


def initial_status(start_time: datetime, now: datetime, publish: bool) -> str:
    if not publish:
        return AuctionStatus.DRAFT
    if ensure_utc(start_time) <= now:
        return AuctionStatus.ACTIVE
    return AuctionStatus.SCHEDULED


def publish(auction: Auction, now: datetime) -> None:
    """DRAFT → SCHEDULED, or straight to ACTIVE when the start time has passed."""
    if auction.status == AuctionStatus.DRAFT and ensure_utc(auction.start_time) <= now:
        transition(auction, AuctionStatus.ACTIVE)
    else:
        transition(auction, AuctionStatus.SCHEDULED)


def refresh_status(auction: Auction, now: datetime) -> bool:
    """Lazy SCHEDULED → ACTIVE promotion. Returns True if the status changed."""
    if auction.status == AuctionStatus.SCHEDULED and ensure_utc(auction.start_time) <= now:
        transition(auction, AuctionStatus.ACTIVE)
        return True
    return False


def is_active(auction: Auction, now: datetime) -> bool:
    return (
        auction.status == AuctionStatus.ACTIVE
        and ensure_utc(auction.start_time) <= now < ensure_utc(auction.end_time)
    )


def is_expired(auction: Auction, now: datetime) -> bool:
    """Still open (SCHEDULED/ACTIVE) but past its end time."""
    return (
        auction.status in (AuctionStatus.SCHEDULED, AuctionStatus.ACTIVE)
        and now >= ensure_utc(auction.end_time)
    )


def can_accept_bids(auction: Auction, now: datetime) -> bool:
    return is_active(auction, now) and auction.winner_id is None


def next_minimum_bid(auction: Auction) -> int:
    return auction.current_price + auction.bid_increment


def reserve_met(auction: Auction) -> bool:
    return auction.reserve_price is None or auction.current_price >= auction.reserve_price


def time_remaining(auction: Auction, now: datetime) -> timedelta:
    if auction.status in TERMINAL_AUCTION_STATUSES:
        return timedelta(0)
    return max(ensure_utc(auction.end_time) - now, timedelta(0))


def apply_bid(auction: Auction, bid: Bid, now: datetime) -> bool:
    """Record an accepted bid on the auction.

    Updates price, highest bidder/bid and the bid counter, then applies
    auto-extend. Returns True if ``end_time`` was extended.
    """
    if bid.amount <= auction.current_price:
        raise BidTooLowError(bid.amount, next_minimum_bid(auction))

    auction.current_price = bid.amount
    auction.highest_bidder_id = bid.bidder_id
    auction.highest_bid_id = bid.id
    auction.total_bids += 1

    if not auction.auto_extend_enabled:
        return False
    window = timedelta(seconds=auction.auto_extend_seconds)
    end_time = ensure_utc(auction.end_time)
    if end_time - now <= window:
        auction.end_time = end_time + window
        return True
    return False


def can_buy_now(auction: Auction, now: datetime) -> bool:
    return (
        auction.buy_it_now_price is not None
        and can_accept_bids(auction, now)
        and auction.current_price < auction.buy_it_now_price
    )


def sell_now(auction: Auction, bid: Bid, now: datetime) -> None:
    """Buy-it-now: ACTIVE → SOLD at the buy-it-now price, ending immediately."""
    transition(auction, AuctionStatus.SOLD)
    auction.current_price = bid.amount
    auction.highest_bidder_id = bid.bidder_id
    auction.highest_bid_id = bid.id
    auction.winner_id = bid.bidder_id
    auction.final_price = bid.amount
    auction.total_bids += 1
    auction.end_time = now


def close(auction: Auction) -> str | None:
    """ACTIVE → ENDED, then → SOLD when the reserve is met and a bid exists.

    Returns the winner id, or None when the auction ends unsold.
    """
    transition(auction, AuctionStatus.ENDED)
    if auction.has_bids and reserve_met(auction) and auction.highest_bidder_id:
        auction.winner_id = auction.highest_bidder_id
        auction.final_price = auction.current_price
        transition(auction, AuctionStatus.SOLD)
        return auction.winner_id
    return None


def cancel(auction: Auction) -> None:
    if auction.has_bids:
        raise AuctionHasBidsError(auction.id)
    transition(auction, AuctionStatus.CANCELLED)
