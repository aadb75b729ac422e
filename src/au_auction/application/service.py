"""AuctionApplicationService: listing management, reads and buy-it-now.

Mutations that touch an existing auction go through the bidding engine's
per-auction serialisation so they cannot interleave with bid placement.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_auction.application.schemas import (
    AuctionResponse,
    BidHistoryItem,
    BidHistoryResponse,
    BidStatsResponse,
    BuyNowResponse,
    CreateAuctionRequest,
)
from src.au_auction.domain import state_machine
from src.au_auction.domain.models import Auction
from src.au_auction.domain.repository import AuctionRepositoryProtocol
from src.au_auction.infrastructure.persistence import AuctionRepository
from src.au_bidding.domain.repository import BidRepositoryProtocol
from src.au_bidding.infrastructure.persistence import BidRepository
from src.au_common.amounts import amount_to_display
from src.au_common.datetime_utils import ensure_utc
from src.au_common.errors import (
    AuctionHasBidsError,
    AuctionNotFoundError,
    InvalidAuctionError,
)
from src.au_common.id_generator import generate_id
from src.au_engine.application.service import get_bidding_engine
from src.au_engine.engine.engine import BiddingEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def validate_create_request(req: CreateAuctionRequest) -> None:
    if ensure_utc(req.end_time) <= ensure_utc(req.start_time):
        raise InvalidAuctionError("end_time must be after start_time")
    if req.reserve_price is not None and req.reserve_price < req.starting_price:
        raise InvalidAuctionError("reserve_price must not be below starting_price")
    if req.buy_it_now_price is not None and req.buy_it_now_price <= req.starting_price:
        raise InvalidAuctionError("buy_it_now_price must be above starting_price")


class AuctionApplicationService:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
        engine: BiddingEngine | None = None,
    ) -> None:
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._engine = engine

    @property
    def engine(self) -> BiddingEngine:
        return self._engine or get_bidding_engine()

    async def create_auction(
        self, db: AsyncSession, req: CreateAuctionRequest
    ) -> AuctionResponse:
        validate_create_request(req)
        now = self.engine.now()
        auction = Auction(
            id=generate_id(),
            title=req.title,
            description=req.description,
            seller_id=req.seller_id,
            starting_price=req.starting_price,
            current_price=req.starting_price,
            reserve_price=req.reserve_price,
            buy_it_now_price=req.buy_it_now_price,
            bid_increment=req.bid_increment,
            start_time=ensure_utc(req.start_time),
            end_time=ensure_utc(req.end_time),
            auto_extend_enabled=req.auto_extend_enabled,
            auto_extend_seconds=req.auto_extend_seconds,
            status=state_machine.initial_status(req.start_time, now, req.publish),
        )
        try:
            created = await self._auctions.create(db, auction)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Auction created: %s status=%s", created.id, created.status)
        return AuctionResponse.from_domain(created, now)

    async def get_auction(self, db: AsyncSession, auction_id: str) -> AuctionResponse:
        try:
            auction = await self.engine.refresh_auction(db, auction_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return AuctionResponse.from_domain(auction, self.engine.now())

    async def publish_auction(self, db: AsyncSession, auction_id: str) -> AuctionResponse:
        async def op() -> Auction:
            auction = await self._load_for_update(db, auction_id)
            state_machine.publish(auction, self.engine.now())
            await self._auctions.save(db, auction)
            return auction

        auction = await self._run(db, auction_id, op)
        return AuctionResponse.from_domain(auction, self.engine.now())

    async def cancel_auction(self, db: AsyncSession, auction_id: str) -> AuctionResponse:
        async def op() -> Auction:
            auction = await self._load_for_update(db, auction_id)
            state_machine.cancel(auction)
            await self._auctions.save(db, auction)
            return auction

        auction = await self._run(db, auction_id, op)
        logger.info("Auction cancelled: %s", auction_id)
        return AuctionResponse.from_domain(auction, self.engine.now())

    async def delete_auction(self, db: AsyncSession, auction_id: str) -> dict[str, str]:
        async def op() -> None:
            auction = await self._load_for_update(db, auction_id)
            if auction.has_bids:
                raise AuctionHasBidsError(auction_id)
            await self._auctions.delete(db, auction_id)

        await self._run(db, auction_id, op)
        logger.info("Auction deleted: %s", auction_id)
        return {"auction_id": auction_id, "deleted": "true"}

    async def get_bid_history(
        self, db: AsyncSession, auction_id: str, limit: int
    ) -> BidHistoryResponse:
        if await self._auctions.get_by_id(db, auction_id) is None:
            raise AuctionNotFoundError(auction_id)
        bids = await self._bids.list_by_auction(db, auction_id, limit)
        stats = await self._bids.get_stats(db, auction_id)
        return BidHistoryResponse(
            auction_id=auction_id,
            bids=[BidHistoryItem.from_domain(b) for b in bids],
            stats=BidStatsResponse.from_domain(stats),
        )

    async def buy_now(self, db: AsyncSession, auction_id: str, buyer_id: str) -> BuyNowResponse:
        try:
            result = await self.engine.buy_now(db, auction_id, buyer_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return BuyNowResponse(
            auction_id=auction_id,
            bid_id=result.bid.id,
            final_price=result.final_price,
            final_price_display=amount_to_display(result.final_price),
            hold_amount=result.bid.hold_amount,
            released_bid_count=len(result.released_bid_ids),
        )

    async def _load_for_update(self, db: AsyncSession, auction_id: str) -> Auction:
        auction = await self._auctions.get_by_id(db, auction_id, for_update=True)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return auction

    async def _run(
        self, db: AsyncSession, auction_id: str, op: Callable[[], Awaitable[T]]
    ) -> T:
        try:
            result = await self.engine.run_serialised(db, auction_id, op)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return result
