"""BidApplicationService: bid placement and auto-bid management.

All writes run under the bidding engine's per-auction serialisation and are
committed here; any exception rolls the session back.
"""

from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.domain.repository import AccountRepositoryProtocol
from src.au_account.infrastructure.persistence import AccountRepository
from src.au_auction.application.schemas import AuctionSummary
from src.au_auction.domain.models import Auction
from src.au_auction.domain.repository import AuctionRepositoryProtocol
from src.au_auction.domain.state_machine import is_active
from src.au_auction.infrastructure.persistence import AuctionRepository
from src.au_bidding.application.schemas import (
    AutoBidSettingsResponse,
    BidListResponse,
    BidResponse,
    PlaceBidRequest,
    PlaceBidResponse,
)
from src.au_bidding.domain.models import Bid
from src.au_bidding.domain.repository import BidRepositoryProtocol
from src.au_bidding.infrastructure.persistence import BidRepository
from src.au_common.errors import (
    AuctionNotAcceptingBidsError,
    AuctionNotFoundError,
    BidAccessDeniedError,
    BidNotFoundError,
    InvalidMaxBidAmountError,
    MaxBidTooLowError,
    NotAutoBidError,
)
from src.au_engine.application.service import get_bidding_engine
from src.au_engine.engine.engine import BiddingEngine
from src.au_risk.rules.balance_check import check_bidder_account, check_max_bid_coverage

T = TypeVar("T")


class BidApplicationService:
    def __init__(
        self,
        bid_repo: BidRepositoryProtocol | None = None,
        auction_repo: AuctionRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        engine: BiddingEngine | None = None,
    ) -> None:
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._engine = engine

    @property
    def engine(self) -> BiddingEngine:
        return self._engine or get_bidding_engine()

    async def place_bid(
        self, db: AsyncSession, req: PlaceBidRequest, bidder_id: str
    ) -> PlaceBidResponse:
        result = await self._commit(
            db,
            self.engine.place_bid(
                db,
                req.auction_id,
                bidder_id,
                req.amount,
                req.is_auto_bid,
                req.max_bid_amount,
            ),
        )
        return PlaceBidResponse(
            bid=BidResponse.from_domain(result.bid),
            auction=AuctionSummary.from_domain(result.auction),
            proxy_bids=[BidResponse.from_domain(b) for b in result.proxy_bids],
            auto_bids_processed=len(result.proxy_bids),
        )

    async def cancel_auto_bid(
        self, db: AsyncSession, bid_id: str, user_id: str
    ) -> AutoBidSettingsResponse:
        bid = await self._get_owned_bid(db, bid_id, user_id)

        async def op() -> None:
            await self._check_auto_bid_editable(db, bid)
            await self._bids.clear_auto_registrations(db, bid.auction_id, bid.bidder_id)

        await self._commit(db, self.engine.run_serialised(db, bid.auction_id, op))
        return AutoBidSettingsResponse(bid_id=bid.id, is_auto_bid=False, max_bid_amount=None)

    async def update_max_bid(
        self, db: AsyncSession, bid_id: str, user_id: str, max_bid_amount: int
    ) -> AutoBidSettingsResponse:
        bid = await self._get_owned_bid(db, bid_id, user_id)
        if max_bid_amount <= 0:
            raise InvalidMaxBidAmountError(bid.amount, max_bid_amount)

        async def op() -> None:
            auction = await self._check_auto_bid_editable(db, bid)
            if max_bid_amount < auction.current_price:
                raise MaxBidTooLowError(max_bid_amount, auction.current_price)
            account = check_bidder_account(
                await self._accounts.get_account_by_user_id(db, user_id), user_id
            )
            check_max_bid_coverage(account, max_bid_amount)
            # The edited registration becomes the only standing one for this bidder
            await self._bids.clear_auto_registrations(
                db, bid.auction_id, bid.bidder_id, keep_bid_id=bid.id
            )
            await self._bids.update_auto_settings(db, bid.id, True, max_bid_amount)

        await self._commit(db, self.engine.run_serialised(db, bid.auction_id, op))
        return AutoBidSettingsResponse(
            bid_id=bid.id, is_auto_bid=True, max_bid_amount=max_bid_amount
        )

    async def list_my_bids(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> BidListResponse:
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        bids = await self._bids.list_by_bidder(db, user_id, status, cursor, limit + 1)
        has_more = len(bids) > limit
        page = bids[:limit]
        return BidListResponse(
            items=[BidResponse.from_domain(b) for b in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    async def _get_owned_bid(self, db: AsyncSession, bid_id: str, user_id: str) -> Bid:
        bid = await self._bids.get_by_id(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)
        if bid.bidder_id != user_id:
            raise BidAccessDeniedError()
        return bid

    async def _check_auto_bid_editable(self, db: AsyncSession, bid: Bid) -> Auction:
        if not bid.is_auto_bid:
            raise NotAutoBidError(bid.id)
        auction = await self._auctions.get_by_id(db, bid.auction_id, for_update=True)
        if auction is None:
            raise AuctionNotFoundError(bid.auction_id)
        if not is_active(auction, self.engine.now()):
            raise AuctionNotAcceptingBidsError(auction.id)
        return auction

    async def _commit(self, db: AsyncSession, work: Awaitable[T]) -> T:
        try:
            result = await work
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return result
