"""Bid domain model: pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.au_common.enums import STANDING_BID_STATUSES, BidStatus


@dataclass
class Bid:
    id: str
    auction_id: str
    bidder_id: str
    amount: int                      # immutable once recorded
    increment_used: int              # auction increment at placement; proxy step size
    is_auto_bid: bool = False
    max_bid_amount: int | None = None  # required when is_auto_bid
    is_proxy_bid: bool = False
    proxy_bidder_id: str | None = None
    hold_amount: int = 0             # ceil(amount * 20%)
    hold_released: bool = False
    hold_release_date: datetime | None = None
    status: str = BidStatus.ACTIVE
    created_at: datetime | None = None  # placement time == auto-bid registration time
    updated_at: datetime | None = None

    @property
    def is_standing_auto_bid(self) -> bool:
        """Auto-bid registration that the proxy resolver may still bid for."""
        return (
            self.is_auto_bid
            and not self.is_proxy_bid
            and (self.max_bid_amount or 0) > 0
            and self.status in STANDING_BID_STATUSES
        )

    @property
    def needs_release(self) -> bool:
        return self.hold_amount > 0 and not self.hold_released


@dataclass
class BidStats:
    total_bids: int = 0
    unique_bidders: int = 0
    highest_bid: int | None = None
    lowest_bid: int | None = None
    average_bid: int | None = None   # rounded down to whole units
    auto_bids: int = 0
    manual_bids: int = 0
