"""BiddingEngine: per-auction serialisation for bid placement and settlement.

Every mutating operation on an auction runs under the auction's in-process
``asyncio.Lock``, inside a savepoint, with the auction row loaded
``FOR UPDATE``. The auction is written back with an optimistic ``version``
check; a stale write raises ConcurrentModificationError, the savepoint is
rolled back and the whole operation is retried from a fresh read, up to
``BID_MAX_RETRIES`` times.

Transaction ownership: the CALLER commits, and the engine only opens
savepoints. The expiry sweep is the exception: it commits after every auction,
so no account or auction row locks are held while it waits on the next
auction's lock, and one failing auction leaves the others settled.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.au_account.domain.repository import AccountRepositoryProtocol
from src.au_auction.domain.models import Auction
from src.au_auction.domain.repository import AuctionRepositoryProtocol
from src.au_auction.domain.state_machine import (
    apply_bid,
    can_buy_now,
    is_expired,
    refresh_status,
    sell_now,
)
from src.au_bidding.domain.history import BidLedger
from src.au_bidding.domain.models import Bid
from src.au_bidding.domain.repository import BidRepositoryProtocol
from src.au_common.amounts import hold_amount
from src.au_common.datetime_utils import utc_now
from src.au_common.enums import BidStatus
from src.au_common.errors import (
    AuctionNotFoundError,
    BuyNowNotAvailableError,
    ConcurrentModificationError,
)
from src.au_common.id_generator import generate_id
from src.au_engine.engine.proxy import ProxyBidResolver
from src.au_risk.rules.balance_check import check_bidder_account, check_hold_coverage
from src.au_risk.rules.self_bid import check_not_self_bid
from src.au_risk.validator import validate_bid
from src.au_settlement.domain.finalizer import AuctionFinalizer, FinalizeOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PlaceBidResult:
    bid: Bid
    auction: Auction
    proxy_bids: list[Bid] = field(default_factory=list)


@dataclass
class BuyNowResult:
    final_price: int
    bid: Bid
    auction: Auction
    released_bid_ids: list[str] = field(default_factory=list)


class BiddingEngine:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol,
        bid_repo: BidRepositoryProtocol,
        account_repo: AccountRepositoryProtocol,
        id_factory: Callable[[], str] = generate_id,
        clock: Callable[[], datetime] = utc_now,
        max_retries: int | None = None,
    ) -> None:
        self._auctions = auction_repo
        self._bids = bid_repo
        self._accounts = account_repo
        self._new_id = id_factory
        self._clock = clock
        self._max_retries = settings.BID_MAX_RETRIES if max_retries is None else max_retries
        self._auction_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.history = BidLedger(bid_repo, account_repo)
        self._proxy = ProxyBidResolver(bid_repo, self.history, id_factory)
        self._finalizer = AuctionFinalizer(auction_repo, self.history)

    def _get_or_create_lock(self, auction_id: str) -> asyncio.Lock:
        return self._auction_locks[auction_id]

    def now(self) -> datetime:
        return self._clock()

    async def run_serialised(
        self,
        db: AsyncSession,
        auction_id: str,
        op: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``op`` under the auction lock in a savepoint, retrying stale writes."""
        lock = self._get_or_create_lock(auction_id)
        async with lock:
            attempt = 0
            while True:
                attempt += 1
                try:
                    async with db.begin_nested():
                        return await op()
                except ConcurrentModificationError:
                    if attempt > self._max_retries:
                        logger.warning(
                            "Giving up on auction %s after %d attempts", auction_id, attempt
                        )
                        raise
                    logger.info(
                        "Concurrent modification on auction %s, retry %d/%d",
                        auction_id,
                        attempt,
                        self._max_retries,
                    )

    # ------------------------------------------------------------------
    # PlaceBid
    # ------------------------------------------------------------------

    async def place_bid(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder_id: str,
        amount: int,
        is_auto_bid: bool = False,
        max_bid_amount: int | None = None,
    ) -> PlaceBidResult:
        return await self.run_serialised(
            db,
            auction_id,
            lambda: self._place_bid_inner(
                db, auction_id, bidder_id, amount, is_auto_bid, max_bid_amount
            ),
        )

    async def _place_bid_inner(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder_id: str,
        amount: int,
        is_auto_bid: bool,
        max_bid_amount: int | None,
    ) -> PlaceBidResult:
        now = self._clock()
        auction = await self._auctions.get_by_id(db, auction_id, for_update=True)
        if auction is not None:
            refresh_status(auction, now)
        account = await self._accounts.get_account_by_user_id(db, bidder_id)

        auction = validate_bid(
            auction, auction_id, bidder_id, account, amount, is_auto_bid, max_bid_amount, now
        )

        bid = Bid(
            id=self._new_id(),
            auction_id=auction.id,
            bidder_id=bidder_id,
            amount=amount,
            increment_used=auction.bid_increment,
            is_auto_bid=is_auto_bid,
            max_bid_amount=max_bid_amount if is_auto_bid else None,
            created_at=now,
        )
        await self._accept_bid(db, auction, bid, now)
        logger.info(
            "Bid accepted: auction=%s bidder=%s amount=%d auto=%s",
            auction.id,
            bidder_id,
            amount,
            is_auto_bid,
        )

        proxy_bids = await self._proxy.resolve(db, auction, now, self._accept_bid)
        for placed in (bid, *proxy_bids):
            placed.status = (
                BidStatus.WINNING if placed.id == auction.highest_bid_id else BidStatus.OUTBID
            )

        await self._auctions.save(db, auction)
        return PlaceBidResult(bid=bid, auction=auction, proxy_bids=proxy_bids)

    async def _accept_bid(
        self, db: AsyncSession, auction: Auction, bid: Bid, now: datetime
    ) -> None:
        """Hold → apply to auction → record → relabel. Used for manual and proxy bids."""
        await self._accounts.hold(db, bid.bidder_id, hold_amount(bid.amount), bid.id)
        extended = apply_bid(auction, bid, now)
        await self.history.record(db, bid)
        await self.history.update_statuses(db, auction.id, bid.id)
        bid.status = BidStatus.WINNING
        if extended:
            logger.info(
                "Auction %s auto-extended to %s", auction.id, auction.end_time.isoformat()
            )

    # ------------------------------------------------------------------
    # BuyNow
    # ------------------------------------------------------------------

    async def buy_now(self, db: AsyncSession, auction_id: str, buyer_id: str) -> BuyNowResult:
        return await self.run_serialised(
            db, auction_id, lambda: self._buy_now_inner(db, auction_id, buyer_id)
        )

    async def _buy_now_inner(
        self, db: AsyncSession, auction_id: str, buyer_id: str
    ) -> BuyNowResult:
        now = self._clock()
        auction = await self._auctions.get_by_id(db, auction_id, for_update=True)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        refresh_status(auction, now)
        if not can_buy_now(auction, now):
            raise BuyNowNotAvailableError(auction_id)
        check_not_self_bid(auction, buyer_id)
        account = check_bidder_account(
            await self._accounts.get_account_by_user_id(db, buyer_id), buyer_id
        )
        price = auction.buy_it_now_price
        if price is None:
            raise BuyNowNotAvailableError(auction_id)
        check_hold_coverage(account, price)

        bid = Bid(
            id=self._new_id(),
            auction_id=auction.id,
            bidder_id=buyer_id,
            amount=price,
            increment_used=0,
            created_at=now,
        )
        await self._accounts.hold(db, buyer_id, hold_amount(price), bid.id)
        sell_now(auction, bid, now)
        await self.history.record(db, bid, status=BidStatus.WON)
        released = await self.history.finalize(db, auction.id, buyer_id)
        await self._auctions.save(db, auction)

        logger.info(
            "Buy it now: auction=%s buyer=%s price=%d released=%d",
            auction.id,
            buyer_id,
            price,
            len(released.released),
        )
        return BuyNowResult(
            final_price=price, bid=bid, auction=auction, released_bid_ids=released.released
        )

    # ------------------------------------------------------------------
    # Lifecycle: lazy refresh + expiry sweep
    # ------------------------------------------------------------------

    async def refresh_auction(self, db: AsyncSession, auction_id: str) -> Auction | None:
        """Read path: promote or settle the auction if its time has come."""
        auction = await self._auctions.get_by_id(db, auction_id)
        if auction is None:
            return None
        now = self._clock()
        if is_expired(auction, now):
            await self._finalize_one(db, auction_id)
        elif refresh_status(auction, now):
            await self._activate_one(db, auction_id)
        else:
            return auction
        return await self._auctions.get_by_id(db, auction_id)

    async def finalize_expired_auctions(self, db: AsyncSession) -> int:
        """Activate due auctions, settle expired ones, retry pending releases.

        Each auction is committed on its own. Idempotent: returns the number of
        auctions settled by this call.
        """
        now = self._clock()
        for auction_id in await self._auctions.list_due_for_activation(db, now):
            await self._sweep_one(db, auction_id, self._activate_one)

        settled = 0
        for auction_id in await self._auctions.list_due_for_finalization(db, now):
            if await self._sweep_one(db, auction_id, self._finalize_one) is not None:
                settled += 1

        retried = await self.history.release_pending_holds(db)
        await db.commit()
        if settled or retried.released or retried.failed:
            logger.info(
                "Expiry sweep: settled=%d holds_released=%d holds_failed=%d",
                settled,
                len(retried.released),
                len(retried.failed),
            )
        return settled

    async def _sweep_one(
        self,
        db: AsyncSession,
        auction_id: str,
        step: Callable[[AsyncSession, str], Awaitable[T]],
    ) -> T | None:
        try:
            result = await step(db, auction_id)
            await db.commit()
        except ConcurrentModificationError:
            await db.rollback()
            # Another worker is settling it; the next sweep sees the result
            logger.warning("Skipping auction %s in sweep: concurrent update", auction_id)
            return None
        except Exception:
            await db.rollback()
            logger.exception("Expiry sweep failed for auction %s", auction_id)
            return None
        return result

    async def _finalize_one(self, db: AsyncSession, auction_id: str) -> FinalizeOutcome | None:
        return await self.run_serialised(
            db, auction_id, lambda: self._finalizer.finalize(db, auction_id, self._clock())
        )

    async def _activate_one(self, db: AsyncSession, auction_id: str) -> bool:
        async def activate() -> bool:
            auction = await self._auctions.get_by_id(db, auction_id, for_update=True)
            if auction is None or not refresh_status(auction, self._clock()):
                return False
            await self._auctions.save(db, auction)
            logger.info("Auction activated: %s", auction_id)
            return True

        return await self.run_serialised(db, auction_id, activate)
