"""Domain models for au_auction: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.au_common.enums import AuctionStatus


@dataclass
class Auction:
    id: str
    title: str
    seller_id: str
    starting_price: int
    current_price: int
    bid_increment: int
    start_time: datetime
    end_time: datetime
    description: str | None = None
    reserve_price: int | None = None       # absent => always met
    buy_it_now_price: int | None = None
    auto_extend_enabled: bool = True
    auto_extend_seconds: int = 300
    status: str = AuctionStatus.DRAFT
    highest_bidder_id: str | None = None
    highest_bid_id: str | None = None
    winner_id: str | None = None           # set only at finalisation or buy-it-now
    final_price: int | None = None
    total_bids: int = 0
    version: int = 0                       # optimistic concurrency counter
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_bids(self) -> bool:
        return self.total_bids > 0
