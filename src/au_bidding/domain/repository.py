# src/au_bidding/domain/repository.py
"""BidRepository Protocol: interface contract for the bid store."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_bidding.domain.models import Bid, BidStats


class BidRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, bid: Bid) -> None: ...

    async def get_by_id(self, db: AsyncSession, bid_id: str) -> Bid | None: ...

    async def mark_winning(self, db: AsyncSession, auction_id: str, bid_id: str) -> None:
        """Other ACTIVE/WINNING bids of the auction → OUTBID, ``bid_id`` → WINNING."""
        ...

    async def settle_statuses(
        self, db: AsyncSession, auction_id: str, winner_id: str | None
    ) -> None:
        """Winner's bids → WON, every other bid of the auction → LOST."""
        ...

    async def list_pending_releases(
        self, db: AsyncSession, auction_id: str | None, limit: int
    ) -> list[Bid]:
        """LOST bids whose hold has not been released (all auctions if None)."""
        ...

    async def mark_hold_released(
        self, db: AsyncSession, bid_id: str, released_at: datetime
    ) -> None: ...

    async def list_standing_auto_bids(self, db: AsyncSession, auction_id: str) -> list[Bid]:
        """Latest standing auto-bid per bidder, oldest registration first."""
        ...

    async def update_auto_settings(
        self,
        db: AsyncSession,
        bid_id: str,
        is_auto_bid: bool,
        max_bid_amount: int | None,
    ) -> None: ...

    async def clear_auto_registrations(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder_id: str,
        keep_bid_id: str | None = None,
    ) -> int:
        """Turn off every auto-bid the bidder registered on the auction except ``keep_bid_id``."""
        ...

    async def list_by_auction(
        self, db: AsyncSession, auction_id: str, limit: int
    ) -> list[Bid]: ...

    async def get_stats(self, db: AsyncSession, auction_id: str) -> BidStats: ...

    async def list_by_bidder(
        self,
        db: AsyncSession,
        bidder_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Bid]: ...
