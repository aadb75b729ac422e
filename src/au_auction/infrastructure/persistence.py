"""AuctionRepository: raw SQL persistence implementation.

``get_by_id(for_update=True)`` takes the row lock that serialises bid
placement across processes. ``save`` is an optimistic write guarded by the
``version`` column.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_auction.domain.models import Auction
from src.au_common.enums import AuctionStatus
from src.au_common.errors import ConcurrentModificationError

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, title, description, seller_id,
    starting_price, current_price, reserve_price, buy_it_now_price, bid_increment,
    start_time, end_time, auto_extend_enabled, auto_extend_seconds,
    status, highest_bidder_id, highest_bid_id, winner_id, final_price,
    total_bids, version, created_at, updated_at
"""

_INSERT_AUCTION_SQL = text(f"""
    INSERT INTO auctions (id, title, description, seller_id,
        starting_price, current_price, reserve_price, buy_it_now_price, bid_increment,
        start_time, end_time, auto_extend_enabled, auto_extend_seconds, status)
    VALUES (:id, :title, :description, :seller_id,
        :starting_price, :current_price, :reserve_price, :buy_it_now_price, :bid_increment,
        :start_time, :end_time, :auto_extend_enabled, :auto_extend_seconds, :status)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_AUCTION_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM auctions WHERE id = :id
""")

_GET_AUCTION_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM auctions WHERE id = :id
    FOR UPDATE
""")

_SAVE_AUCTION_SQL = text("""
    UPDATE auctions
    SET current_price = :current_price,
        end_time = :end_time,
        status = :status,
        highest_bidder_id = :highest_bidder_id,
        highest_bid_id = :highest_bid_id,
        winner_id = :winner_id,
        final_price = :final_price,
        total_bids = :total_bids,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND version = :version
    RETURNING version, updated_at
""")

_DELETE_AUCTION_SQL = text("""
    DELETE FROM auctions WHERE id = :id AND total_bids = 0
""")

_DUE_FOR_ACTIVATION_SQL = text("""
    SELECT id FROM auctions
    WHERE status = 'SCHEDULED' AND start_time <= :now AND end_time > :now
    ORDER BY start_time ASC
""")

_DUE_FOR_FINALIZATION_SQL = text("""
    SELECT id FROM auctions
    WHERE status IN ('SCHEDULED', 'ACTIVE') AND end_time <= :now
    ORDER BY end_time ASC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_auction(row: Any) -> Auction:
    return Auction(
        id=row.id,
        title=row.title,
        description=row.description,
        seller_id=row.seller_id,
        starting_price=row.starting_price,
        current_price=row.current_price,
        reserve_price=row.reserve_price,
        buy_it_now_price=row.buy_it_now_price,
        bid_increment=row.bid_increment,
        start_time=row.start_time,
        end_time=row.end_time,
        auto_extend_enabled=row.auto_extend_enabled,
        auto_extend_seconds=row.auto_extend_seconds,
        status=row.status,
        highest_bidder_id=row.highest_bidder_id,
        highest_bid_id=row.highest_bid_id,
        winner_id=row.winner_id,
        final_price=row.final_price,
        total_bids=row.total_bids,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuctionRepository:
    """Concrete implementation of AuctionRepositoryProtocol using raw SQL."""

    async def create(self, db: AsyncSession, auction: Auction) -> Auction:
        result = await db.execute(
            _INSERT_AUCTION_SQL,
            {
                "id": auction.id,
                "title": auction.title,
                "description": auction.description,
                "seller_id": auction.seller_id,
                "starting_price": auction.starting_price,
                "current_price": auction.current_price,
                "reserve_price": auction.reserve_price,
                "buy_it_now_price": auction.buy_it_now_price,
                "bid_increment": auction.bid_increment,
                "start_time": auction.start_time,
                "end_time": auction.end_time,
                "auto_extend_enabled": auction.auto_extend_enabled,
                "auto_extend_seconds": auction.auto_extend_seconds,
                "status": AuctionStatus(auction.status).value,
            },
        )
        return _row_to_auction(result.fetchone())

    async def get_by_id(
        self, db: AsyncSession, auction_id: str, for_update: bool = False
    ) -> Auction | None:
        sql = _GET_AUCTION_FOR_UPDATE_SQL if for_update else _GET_AUCTION_SQL
        row = (await db.execute(sql, {"id": auction_id})).fetchone()
        return _row_to_auction(row) if row else None

    async def save(self, db: AsyncSession, auction: Auction) -> None:
        result = await db.execute(
            _SAVE_AUCTION_SQL,
            {
                "id": auction.id,
                "version": auction.version,
                "current_price": auction.current_price,
                "end_time": auction.end_time,
                "status": AuctionStatus(auction.status).value,
                "highest_bidder_id": auction.highest_bidder_id,
                "highest_bid_id": auction.highest_bid_id,
                "winner_id": auction.winner_id,
                "final_price": auction.final_price,
                "total_bids": auction.total_bids,
            },
        )
        row = result.fetchone()
        if row is None:
            raise ConcurrentModificationError(auction.id)
        auction.version = row.version
        auction.updated_at = row.updated_at

    async def delete(self, db: AsyncSession, auction_id: str) -> None:
        await db.execute(_DELETE_AUCTION_SQL, {"id": auction_id})

    async def list_due_for_activation(self, db: AsyncSession, now: datetime) -> list[str]:
        rows = (await db.execute(_DUE_FOR_ACTIVATION_SQL, {"now": now})).fetchall()
        return [row.id for row in rows]

    async def list_due_for_finalization(self, db: AsyncSession, now: datetime) -> list[str]:
        rows = (await db.execute(_DUE_FOR_FINALIZATION_SQL, {"now": now})).fetchall()
        return [row.id for row in rows]
