"""Pydantic request/response schemas for au_auction API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.au_auction.domain.models import Auction
from src.au_auction.domain.state_machine import next_minimum_bid, reserve_met, time_remaining
from src.au_bidding.domain.models import Bid, BidStats
from src.au_common.amounts import amount_to_display
from src.au_common.enums import AuctionStatus, BidStatus

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateAuctionRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    seller_id: str = Field(..., min_length=1)
    starting_price: int = Field(..., ge=1)
    reserve_price: int | None = Field(None, ge=1)
    buy_it_now_price: int | None = Field(None, ge=1)
    bid_increment: int = Field(100, ge=1)
    start_time: datetime
    end_time: datetime
    auto_extend_enabled: bool = True
    auto_extend_seconds: int = Field(300, ge=1, le=3600)
    publish: bool = True  # False keeps the auction in DRAFT


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class AuctionSummary(BaseModel):
    """Price/leader snapshot returned with every accepted bid."""

    id: str
    status: str
    current_price: int
    current_price_display: str
    next_minimum_bid: int
    highest_bidder_id: str | None
    total_bids: int
    end_time: str

    @classmethod
    def from_domain(cls, auction: Auction) -> "AuctionSummary":
        return cls(
            id=auction.id,
            status=AuctionStatus(auction.status).value,
            current_price=auction.current_price,
            current_price_display=amount_to_display(auction.current_price),
            next_minimum_bid=next_minimum_bid(auction),
            highest_bidder_id=auction.highest_bidder_id,
            total_bids=auction.total_bids,
            end_time=auction.end_time.isoformat(),
        )


class AuctionResponse(BaseModel):
    id: str
    title: str
    description: str | None
    seller_id: str
    status: str
    starting_price: int
    current_price: int
    current_price_display: str
    next_minimum_bid: int
    bid_increment: int
    has_reserve: bool
    reserve_met: bool
    buy_it_now_price: int | None
    start_time: str
    end_time: str
    time_remaining_seconds: int
    auto_extend_enabled: bool
    auto_extend_seconds: int
    highest_bidder_id: str | None
    winner_id: str | None
    final_price: int | None
    total_bids: int

    @classmethod
    def from_domain(cls, auction: Auction, now: datetime) -> "AuctionResponse":
        return cls(
            id=auction.id,
            title=auction.title,
            description=auction.description,
            seller_id=auction.seller_id,
            status=AuctionStatus(auction.status).value,
            starting_price=auction.starting_price,
            current_price=auction.current_price,
            current_price_display=amount_to_display(auction.current_price),
            next_minimum_bid=next_minimum_bid(auction),
            bid_increment=auction.bid_increment,
            has_reserve=auction.reserve_price is not None,
            reserve_met=reserve_met(auction),
            buy_it_now_price=auction.buy_it_now_price,
            start_time=auction.start_time.isoformat(),
            end_time=auction.end_time.isoformat(),
            time_remaining_seconds=int(time_remaining(auction, now).total_seconds()),
            auto_extend_enabled=auction.auto_extend_enabled,
            auto_extend_seconds=auction.auto_extend_seconds,
            highest_bidder_id=auction.highest_bidder_id,
            winner_id=auction.winner_id,
            final_price=auction.final_price,
            total_bids=auction.total_bids,
        )


class BidHistoryItem(BaseModel):
    id: str
    bidder_id: str
    amount: int
    amount_display: str
    status: str
    is_auto_bid: bool
    is_proxy_bid: bool
    created_at: str

    @classmethod
    def from_domain(cls, bid: Bid) -> "BidHistoryItem":
        return cls(
            id=bid.id,
            bidder_id=bid.bidder_id,
            amount=bid.amount,
            amount_display=amount_to_display(bid.amount),
            status=BidStatus(bid.status).value,
            is_auto_bid=bid.is_auto_bid,
            is_proxy_bid=bid.is_proxy_bid,
            created_at=bid.created_at.isoformat() if bid.created_at else "",
        )


class BidStatsResponse(BaseModel):
    total_bids: int
    unique_bidders: int
    highest_bid: int | None
    lowest_bid: int | None
    average_bid: int | None
    auto_bids: int
    manual_bids: int

    @classmethod
    def from_domain(cls, stats: BidStats) -> "BidStatsResponse":
        return cls(
            total_bids=stats.total_bids,
            unique_bidders=stats.unique_bidders,
            highest_bid=stats.highest_bid,
            lowest_bid=stats.lowest_bid,
            average_bid=stats.average_bid,
            auto_bids=stats.auto_bids,
            manual_bids=stats.manual_bids,
        )


class BidHistoryResponse(BaseModel):
    auction_id: str
    bids: list[BidHistoryItem]
    stats: BidStatsResponse


class BuyNowResponse(BaseModel):
    auction_id: str
    bid_id: str
    final_price: int
    final_price_display: str
    hold_amount: int
    released_bid_count: int
