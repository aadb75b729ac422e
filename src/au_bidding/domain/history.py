"""BidLedger: append-only bid history and end-of-auction hold release.

Bids are never deleted and their amount never changes; only ``status`` and the
hold-release fields move. Releasing a hold is owned here, not by the balance
store: ``hold_released`` is the idempotency flag, so a bid's hold is credited
back at most once no matter how often ``finalize`` or the sweep runs.

Each release runs in its own savepoint. A failed release is logged, leaves
``hold_released = false`` and is retried by ``release_pending_holds``.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.domain.repository import AccountRepositoryProtocol
from src.au_bidding.domain.models import Bid
from src.au_bidding.domain.repository import BidRepositoryProtocol
from src.au_common.amounts import hold_amount
from src.au_common.datetime_utils import utc_now
from src.au_common.enums import BidStatus

logger = logging.getLogger(__name__)

_RELEASE_BATCH = 500


@dataclass
class ReleaseResult:
    released: list[str] = field(default_factory=list)  # bid ids
    failed: list[str] = field(default_factory=list)


class BidLedger:
    def __init__(
        self,
        bid_repo: BidRepositoryProtocol,
        account_repo: AccountRepositoryProtocol,
    ) -> None:
        self._bids = bid_repo
        self._accounts = account_repo

    async def record(
        self, db: AsyncSession, bid: Bid, status: str = BidStatus.ACTIVE
    ) -> Bid:
        bid.status = status
        bid.hold_amount = hold_amount(bid.amount)
        bid.hold_released = False
        bid.hold_release_date = None
        await self._bids.insert(db, bid)
        return bid

    async def update_statuses(
        self, db: AsyncSession, auction_id: str, winning_bid_id: str
    ) -> None:
        await self._bids.mark_winning(db, auction_id, winning_bid_id)

    async def finalize(
        self, db: AsyncSession, auction_id: str, winner_id: str | None
    ) -> ReleaseResult:
        """Winner's bids → WON, others → LOST, then release every losing hold."""
        await self._bids.settle_statuses(db, auction_id, winner_id)
        pending = await self._bids.list_pending_releases(db, auction_id, _RELEASE_BATCH)
        return await self._release_all(db, pending)

    async def release_pending_holds(
        self, db: AsyncSession, limit: int = _RELEASE_BATCH
    ) -> ReleaseResult:
        """Retry releases that failed during an earlier finalisation."""
        pending = await self._bids.list_pending_releases(db, None, limit)
        return await self._release_all(db, pending)

    async def _release_all(self, db: AsyncSession, bids: list[Bid]) -> ReleaseResult:
        result = ReleaseResult()
        for bid in bids:
            if not bid.needs_release:
                continue
            try:
                async with db.begin_nested():
                    await self._accounts.release(db, bid.bidder_id, bid.hold_amount, bid.id)
                    released_at = utc_now()
                    await self._bids.mark_hold_released(db, bid.id, released_at)
            except Exception:
                logger.exception(
                    "Hold release failed: bid=%s bidder=%s amount=%d",
                    bid.id,
                    bid.bidder_id,
                    bid.hold_amount,
                )
                result.failed.append(bid.id)
                continue
            bid.hold_released = True
            bid.hold_release_date = released_at
            result.released.append(bid.id)
        return result
