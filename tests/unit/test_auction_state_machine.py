"""Tests for au_auction.domain.state_machine: pure lifecycle and price rules."""

from datetime import UTC, datetime, timedelta

import pytest

from src.au_auction.domain.models import Auction
from src.au_auction.domain.state_machine import (
    apply_bid,
    can_accept_bids,
    can_buy_now,
    cancel,
    close,
    initial_status,
    is_active,
    is_expired,
    next_minimum_bid,
    publish,
    refresh_status,
    reserve_met,
    sell_now,
    time_remaining,
    transition,
)
from src.au_bidding.domain.models import Bid
from src.au_common.enums import AuctionStatus
from src.au_common.errors import (
    AuctionHasBidsError,
    BidTooLowError,
    InvalidStateTransitionError,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _auction(**overrides: object) -> Auction:
    fields: dict = {
        "id": "auc-1",
        "title": "Lot",
        "seller_id": "seller",
        "starting_price": 100,
        "current_price": 100,
        "bid_increment": 50,
        "start_time": NOW - timedelta(hours=1),
        "end_time": NOW + timedelta(hours=1),
        "status": AuctionStatus.ACTIVE,
    }
    fields.update(overrides)
    return Auction(**fields)


def _bid(amount: int, bidder_id: str = "A", bid_id: str = "b1") -> Bid:
    return Bid(id=bid_id, auction_id="auc-1", bidder_id=bidder_id, amount=amount,
               increment_used=50, created_at=NOW)


class TestTransitions:
    @pytest.mark.parametrize(
        ("from_status", "to_status"),
        [
            (AuctionStatus.DRAFT, AuctionStatus.SCHEDULED),
            (AuctionStatus.DRAFT, AuctionStatus.ACTIVE),
            (AuctionStatus.SCHEDULED, AuctionStatus.ACTIVE),
            (AuctionStatus.ACTIVE, AuctionStatus.ENDED),
            (AuctionStatus.ACTIVE, AuctionStatus.SOLD),
            (AuctionStatus.ENDED, AuctionStatus.SOLD),
            (AuctionStatus.SCHEDULED, AuctionStatus.CANCELLED),
        ],
    )
    def test_allowed(self, from_status: str, to_status: str) -> None:
        auction = _auction(status=from_status)
        transition(auction, to_status)
        assert auction.status == to_status

    @pytest.mark.parametrize(
        ("from_status", "to_status"),
        [
            (AuctionStatus.SOLD, AuctionStatus.ACTIVE),
            (AuctionStatus.ENDED, AuctionStatus.ACTIVE),
            (AuctionStatus.CANCELLED, AuctionStatus.SCHEDULED),
            (AuctionStatus.SCHEDULED, AuctionStatus.ENDED),
            (AuctionStatus.DRAFT, AuctionStatus.SOLD),
        ],
    )
    def test_rejected(self, from_status: str, to_status: str) -> None:
        auction = _auction(status=from_status)
        with pytest.raises(InvalidStateTransitionError):
            transition(auction, to_status)
        assert auction.status == from_status


class TestPublishing:
    def test_initial_status_draft(self) -> None:
        assert initial_status(NOW, NOW, publish=False) == AuctionStatus.DRAFT

    def test_initial_status_future_start(self) -> None:
        assert initial_status(NOW + timedelta(minutes=1), NOW, True) == AuctionStatus.SCHEDULED

    def test_initial_status_started(self) -> None:
        assert initial_status(NOW, NOW, True) == AuctionStatus.ACTIVE

    def test_publish_future(self) -> None:
        auction = _auction(status=AuctionStatus.DRAFT, start_time=NOW + timedelta(hours=1),
                           end_time=NOW + timedelta(hours=2))
        publish(auction, NOW)
        assert auction.status == AuctionStatus.SCHEDULED

    def test_publish_after_start(self) -> None:
        auction = _auction(status=AuctionStatus.DRAFT)
        publish(auction, NOW)
        assert auction.status == AuctionStatus.ACTIVE

    def test_publish_twice_rejected(self) -> None:
        auction = _auction(status=AuctionStatus.ACTIVE)
        with pytest.raises(InvalidStateTransitionError):
            publish(auction, NOW)

    def test_refresh_promotes_scheduled(self) -> None:
        auction = _auction(status=AuctionStatus.SCHEDULED)
        assert refresh_status(auction, NOW) is True
        assert auction.status == AuctionStatus.ACTIVE

    def test_refresh_waits_for_start(self) -> None:
        auction = _auction(status=AuctionStatus.SCHEDULED, start_time=NOW + timedelta(seconds=1))
        assert refresh_status(auction, NOW) is False
        assert auction.status == AuctionStatus.SCHEDULED


class TestQueries:
    def test_active_window(self) -> None:
        auction = _auction()
        assert is_active(auction, NOW)
        assert not is_active(auction, auction.end_time)
        assert not is_active(auction, auction.start_time - timedelta(seconds=1))

    def test_expired(self) -> None:
        auction = _auction()
        assert not is_expired(auction, NOW)
        assert is_expired(auction, auction.end_time)
        assert not is_expired(_auction(status=AuctionStatus.SOLD), auction.end_time)

    def test_winner_closes_bidding(self) -> None:
        assert not can_accept_bids(_auction(winner_id="B"), NOW)

    def test_next_minimum_bid(self) -> None:
        assert next_minimum_bid(_auction(current_price=150)) == 200

    def test_reserve(self) -> None:
        assert reserve_met(_auction())
        assert not reserve_met(_auction(reserve_price=1000, current_price=900))
        assert reserve_met(_auction(reserve_price=1000, current_price=1000))

    def test_time_remaining(self) -> None:
        assert time_remaining(_auction(), NOW) == timedelta(hours=1)
        assert time_remaining(_auction(), NOW + timedelta(days=1)) == timedelta(0)
        assert time_remaining(_auction(status=AuctionStatus.ENDED), NOW) == timedelta(0)


class TestApplyBid:
    def test_updates_price_and_leader(self) -> None:
        auction = _auction()
        extended = apply_bid(auction, _bid(150), NOW)
        assert extended is False
        assert auction.current_price == 150
        assert auction.highest_bidder_id == "A"
        assert auction.highest_bid_id == "b1"
        assert auction.total_bids == 1

    def test_not_above_current_price_rejected(self) -> None:
        auction = _auction(current_price=150)
        with pytest.raises(BidTooLowError) as exc_info:
            apply_bid(auction, _bid(150), NOW)
        assert exc_info.value.details == {"minimum_bid": 200}
        assert auction.total_bids == 0

    def test_extends_inside_window(self) -> None:
        end = NOW + timedelta(seconds=300)
        auction = _auction(end_time=end)
        assert apply_bid(auction, _bid(150), NOW) is True
        assert auction.end_time == end + timedelta(seconds=300)

    def test_no_extension_outside_window(self) -> None:
        end = NOW + timedelta(seconds=301)
        auction = _auction(end_time=end)
        assert apply_bid(auction, _bid(150), NOW) is False
        assert auction.end_time == end

    def test_custom_window(self) -> None:
        end = NOW + timedelta(seconds=50)
        auction = _auction(end_time=end, auto_extend_seconds=60)
        apply_bid(auction, _bid(150), NOW)
        assert auction.end_time == end + timedelta(seconds=60)


class TestBuyNowAndClose:
    def test_can_buy_now(self) -> None:
        assert can_buy_now(_auction(buy_it_now_price=500), NOW)
        assert not can_buy_now(_auction(), NOW)
        assert not can_buy_now(_auction(buy_it_now_price=500, current_price=500), NOW)

    def test_sell_now(self) -> None:
        auction = _auction(buy_it_now_price=500)
        sell_now(auction, _bid(500, bidder_id="B"), NOW)
        assert auction.status == AuctionStatus.SOLD
        assert auction.winner_id == "B"
        assert auction.final_price == 500
        assert auction.end_time == NOW
        assert auction.total_bids == 1

    def test_close_sold(self) -> None:
        auction = _auction(current_price=300, total_bids=2, highest_bidder_id="B")
        assert close(auction) == "B"
        assert auction.status == AuctionStatus.SOLD
        assert auction.final_price == 300

    def test_close_reserve_not_met(self) -> None:
        auction = _auction(current_price=900, reserve_price=1000, total_bids=1,
                           highest_bidder_id="B")
        assert close(auction) is None
        assert auction.status == AuctionStatus.ENDED
        assert auction.winner_id is None

    def test_close_without_bids(self) -> None:
        auction = _auction()
        assert close(auction) is None
        assert auction.status == AuctionStatus.ENDED

    def test_cancel_without_bids(self) -> None:
        auction = _auction(status=AuctionStatus.SCHEDULED)
        cancel(auction)
        assert auction.status == AuctionStatus.CANCELLED

    def test_cancel_with_bids_rejected(self) -> None:
        with pytest.raises(AuctionHasBidsError):
            cancel(_auction(total_bids=1))
