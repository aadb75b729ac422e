"""Pydantic request/response schemas for au_bidding API."""

from pydantic import BaseModel, Field, model_validator

from src.au_auction.application.schemas import AuctionSummary
from src.au_bidding.domain.models import Bid
from src.au_common.amounts import amount_to_display
from src.au_common.enums import BidStatus

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PlaceBidRequest(BaseModel):
    auction_id: str = Field(..., min_length=1)
    amount: int = Field(..., ge=1, description="Bid amount (whole units)")
    is_auto_bid: bool = False
    max_bid_amount: int | None = Field(None, ge=1, description="Proxy ceiling for auto-bids")

    @model_validator(mode="after")
    def _drop_max_for_manual(self) -> "PlaceBidRequest":
        if not self.is_auto_bid:
            self.max_bid_amount = None
        return self


class UpdateMaxBidRequest(BaseModel):
    # Checked in the service so a non-positive value maps to InvalidMaxBidAmount
    max_bid_amount: int


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class BidResponse(BaseModel):
    id: str
    auction_id: str
    bidder_id: str
    amount: int
    amount_display: str
    status: str
    is_auto_bid: bool
    max_bid_amount: int | None
    is_proxy_bid: bool
    hold_amount: int
    hold_released: bool
    created_at: str

    @classmethod
    def from_domain(cls, bid: Bid) -> "BidResponse":
        return cls(
            id=bid.id,
            auction_id=bid.auction_id,
            bidder_id=bid.bidder_id,
            amount=bid.amount,
            amount_display=amount_to_display(bid.amount),
            status=BidStatus(bid.status).value,
            is_auto_bid=bid.is_auto_bid,
            max_bid_amount=bid.max_bid_amount,
            is_proxy_bid=bid.is_proxy_bid,
            hold_amount=bid.hold_amount,
            hold_released=bid.hold_released,
            created_at=bid.created_at.isoformat() if bid.created_at else "",
        )


class PlaceBidResponse(BaseModel):
    bid: BidResponse
    auction: AuctionSummary
    proxy_bids: list[BidResponse]
    auto_bids_processed: int


class AutoBidSettingsResponse(BaseModel):
    bid_id: str
    is_auto_bid: bool
    max_bid_amount: int | None


class BidListResponse(BaseModel):
    items: list[BidResponse]
    next_cursor: str | None
    has_more: bool
