"""AuctionFinalizer: end-of-auction settlement.

Once ``now >= end_time`` on a SCHEDULED/ACTIVE auction:

    1. → ENDED
    2. reserve met and at least one bid → winner = highest bidder,
       final_price = current_price, → SOLD
    3. bid statuses settled (winner's bids WON, all others LOST) and every
       losing hold released

Re-running on an auction that is already ENDED/SOLD/CANCELLED is a no-op, so
the sweep and the lazy read path may race without double-settling.

The caller holds the per-auction lock and owns the transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_auction.domain.models import Auction
from src.au_auction.domain.repository import AuctionRepositoryProtocol
from src.au_auction.domain.state_machine import close, is_expired, refresh_status
from src.au_bidding.domain.history import BidLedger

logger = logging.getLogger(__name__)


@dataclass
class FinalizeOutcome:
    auction_id: str
    status: str
    winner_id: str | None
    final_price: int | None
    released_bid_ids: list[str] = field(default_factory=list)
    failed_bid_ids: list[str] = field(default_factory=list)


class AuctionFinalizer:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol,
        history: BidLedger,
    ) -> None:
        self._auctions = auction_repo
        self._history = history

    async def finalize(
        self, db: AsyncSession, auction_id: str, now: datetime
    ) -> FinalizeOutcome | None:
        """Settle ``auction_id`` if it has expired; None when nothing to do."""
        auction = await self._auctions.get_by_id(db, auction_id, for_update=True)
        if auction is None or not is_expired(auction, now):
            return None
        return await self.finalize_loaded(db, auction, now)

    async def finalize_loaded(
        self, db: AsyncSession, auction: Auction, now: datetime
    ) -> FinalizeOutcome:
        # A SCHEDULED auction whose whole window passed unseen still goes via ACTIVE
        refresh_status(auction, now)
        winner_id = close(auction)
        await self._auctions.save(db, auction)

        released = await self._history.finalize(db, auction.id, winner_id)

        if winner_id is None:
            logger.info(
                "Auction ended unsold: auction=%s price=%d reserve=%s bids=%d",
                auction.id,
                auction.current_price,
                auction.reserve_price,
                auction.total_bids,
            )
        else:
            logger.info(
                "Auction sold: auction=%s winner=%s final_price=%d",
                auction.id,
                winner_id,
                auction.final_price,
            )
        if released.failed:
            logger.warning(
                "Auction %s settled with %d unreleased holds; the sweep will retry",
                auction.id,
                len(released.failed),
            )
        return FinalizeOutcome(
            auction_id=auction.id,
            status=auction.status,
            winner_id=winner_id,
            final_price=auction.final_price,
            released_bid_ids=released.released,
            failed_bid_ids=released.failed,
        )
