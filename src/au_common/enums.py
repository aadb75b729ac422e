"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class AuctionStatus(str, Enum):
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    SOLD = "SOLD"
    CANCELLED = "CANCELLED"


TERMINAL_AUCTION_STATUSES: frozenset[str] = frozenset(
    {AuctionStatus.ENDED, AuctionStatus.SOLD, AuctionStatus.CANCELLED}
)


class BidStatus(str, Enum):
    ACTIVE = "ACTIVE"
    OUTBID = "OUTBID"
    WINNING = "WINNING"
    WON = "WON"
    LOST = "LOST"


# Bids that may still be relabelled by a later bid
OPEN_BID_STATUSES: tuple[str, ...] = (BidStatus.ACTIVE, BidStatus.WINNING)
# Auto-bid registrations keep bidding while their bid is not final
STANDING_BID_STATUSES: tuple[str, ...] = (
    BidStatus.ACTIVE,
    BidStatus.WINNING,
    BidStatus.OUTBID,
)


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    BID_HOLD = "BID_HOLD"
    BID_HOLD_RELEASE = "BID_HOLD_RELEASE"
