"""ProxyBidResolver: automatic bidding on behalf of auto-bid registrations.

After every accepted bid the resolver runs rounds until nobody can or will
outbid the current leader:

  * registrations are the latest standing auto-bid of each bidder, oldest
    registration first (placement time, then id)
  * each round skips the leader and bidders that ran out of balance; the first
    registration that can reach ``current_price + increment_used`` within its
    ceiling places a proxy bid, and a new round starts
  * when the leader holds an earlier registration with the same ceiling as the
    challenger, the challenger cannot win; the leader answers once at that
    ceiling instead, so the earlier registration wins at that price whatever
    the increment. A higher earlier ceiling gets no shortcut: both sides keep
    stepping one increment at a time until the challenger runs out

The price strictly increases with every proxy bid and never passes the highest
ceiling, so the cascade always terminates.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_auction.domain.models import Auction
from src.au_bidding.domain.history import BidLedger
from src.au_bidding.domain.models import Bid
from src.au_bidding.domain.repository import BidRepositoryProtocol
from src.au_common.errors import InsufficientBalanceError

logger = logging.getLogger(__name__)

AcceptBid = Callable[[AsyncSession, Auction, Bid, datetime], Awaitable[None]]


def _registered_before(a: Bid, b: Bid) -> bool:
    return (a.created_at, a.id) < (b.created_at, b.id)


class ProxyBidResolver:
    def __init__(
        self,
        bid_repo: BidRepositoryProtocol,
        history: BidLedger,
        id_factory: Callable[[], str],
    ) -> None:
        self._bids = bid_repo
        self._history = history
        self._new_id = id_factory

    async def resolve(
        self,
        db: AsyncSession,
        auction: Auction,
        now: datetime,
        accept: AcceptBid,
    ) -> list[Bid]:
        """Run the cascade on ``auction`` (locked by the caller); returns proxy bids."""
        registrations = await self._bids.list_standing_auto_bids(db, auction.id)
        if not registrations:
            return []
        by_bidder = {reg.bidder_id: reg for reg in registrations}
        exhausted: set[str] = set()
        placed: list[Bid] = []

        while True:
            proxy = await self._next_round(
                db, auction, registrations, by_bidder, exhausted, now, accept
            )
            if proxy is None:
                break
            placed.append(proxy)

        if placed and auction.highest_bid_id:
            await self._history.update_statuses(db, auction.id, auction.highest_bid_id)
            logger.info(
                "Proxy cascade: auction=%s proxy_bids=%d price=%d leader=%s",
                auction.id,
                len(placed),
                auction.current_price,
                auction.highest_bidder_id,
            )
        return placed

    async def _next_round(
        self,
        db: AsyncSession,
        auction: Auction,
        registrations: list[Bid],
        by_bidder: dict[str, Bid],
        exhausted: set[str],
        now: datetime,
        accept: AcceptBid,
    ) -> Bid | None:
        leader_id = auction.highest_bidder_id
        leader_reg = by_bidder.get(leader_id) if leader_id else None

        for reg in registrations:
            if reg.bidder_id == leader_id or reg.bidder_id in exhausted:
                continue
            ceiling = reg.max_bid_amount or 0
            target = auction.current_price + reg.increment_used
            if target > ceiling:
                continue

            candidates: list[tuple[Bid, int]] = []
            if (
                leader_reg is not None
                and leader_reg.bidder_id not in exhausted
                and _registered_before(leader_reg, reg)
                and ceiling == (leader_reg.max_bid_amount or 0)
            ):
                candidates.append((leader_reg, ceiling))
            candidates.append((reg, target))

            for owner, amount in candidates:
                proxy = self._build_proxy(auction, owner, amount, now)
                try:
                    async with db.begin_nested():
                        await accept(db, auction, proxy, now)
                except InsufficientBalanceError:
                    logger.info(
                        "Proxy bidder exhausted: auction=%s bidder=%s amount=%d",
                        auction.id,
                        owner.bidder_id,
                        amount,
                    )
                    exhausted.add(owner.bidder_id)
                    continue
                return proxy
        return None

    def _build_proxy(self, auction: Auction, reg: Bid, amount: int, now: datetime) -> Bid:
        return Bid(
            id=self._new_id(),
            auction_id=auction.id,
            bidder_id=reg.bidder_id,
            amount=amount,
            increment_used=reg.increment_used,
            is_auto_bid=False,
            max_bid_amount=None,
            is_proxy_bid=True,
            proxy_bidder_id=reg.bidder_id,
            created_at=now,
        )
