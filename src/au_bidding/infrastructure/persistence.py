# src/au_bidding/infrastructure/persistence.py
"""BidRepository: raw SQL persistence implementation."""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_bidding.domain.models import Bid, BidStats
from src.au_common.enums import BidStatus

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, auction_id, bidder_id, amount, increment_used,
    is_auto_bid, max_bid_amount, is_proxy_bid, proxy_bidder_id,
    hold_amount, hold_released, hold_release_date, status, created_at, updated_at
"""

_INSERT_BID_SQL = text("""
    INSERT INTO bids (id, auction_id, bidder_id, amount, increment_used,
        is_auto_bid, max_bid_amount, is_proxy_bid, proxy_bidder_id,
        hold_amount, hold_released, status, created_at)
    VALUES (:id, :auction_id, :bidder_id, :amount, :increment_used,
        :is_auto_bid, :max_bid_amount, :is_proxy_bid, :proxy_bidder_id,
        :hold_amount, FALSE, :status, :created_at)
""")

_GET_BID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids WHERE id = :id
""")

_MARK_OTHERS_OUTBID_SQL = text("""
    UPDATE bids
    SET status = 'OUTBID', updated_at = NOW()
    WHERE auction_id = :auction_id
      AND id <> :bid_id
      AND status IN ('ACTIVE', 'WINNING')
""")

_MARK_WINNING_SQL = text("""
    UPDATE bids
    SET status = 'WINNING', updated_at = NOW()
    WHERE id = :bid_id
""")

_SETTLE_STATUSES_SQL = text("""
    UPDATE bids
    SET status = CASE
            WHEN CAST(:winner_id AS TEXT) IS NOT NULL
                 AND bidder_id = CAST(:winner_id AS TEXT) THEN 'WON'
            ELSE 'LOST'
        END,
        updated_at = NOW()
    WHERE auction_id = :auction_id
      AND status NOT IN ('WON', 'LOST')
""")

_LIST_PENDING_RELEASES_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids
    WHERE status = 'LOST'
      AND hold_released = FALSE
      AND hold_amount > 0
      AND (CAST(:auction_id AS TEXT) IS NULL OR auction_id = CAST(:auction_id AS TEXT))
    ORDER BY created_at ASC, id ASC
    LIMIT :limit
""")

_MARK_HOLD_RELEASED_SQL = text("""
    UPDATE bids
    SET hold_released = TRUE, hold_release_date = :released_at, updated_at = NOW()
    WHERE id = :bid_id AND hold_released = FALSE
""")

# Latest registration per bidder, then oldest-registration-first for the resolver
_LIST_STANDING_AUTO_BIDS_SQL = text(f"""
    SELECT * FROM (
        SELECT DISTINCT ON (bidder_id) {_SELECT_COLUMNS}
        FROM bids
        WHERE auction_id = :auction_id
          AND is_auto_bid = TRUE
          AND is_proxy_bid = FALSE
          AND max_bid_amount > 0
          AND status IN ('ACTIVE', 'WINNING', 'OUTBID')
        ORDER BY bidder_id, created_at DESC, id DESC
    ) standing
    ORDER BY created_at ASC, id ASC
""")

_UPDATE_AUTO_SETTINGS_SQL = text("""
    UPDATE bids
    SET is_auto_bid = :is_auto_bid, max_bid_amount = :max_bid_amount, updated_at = NOW()
    WHERE id = :bid_id
""")

# Superseded registrations would otherwise resurface once the latest is cancelled
_CLEAR_AUTO_REGISTRATIONS_SQL = text("""
    UPDATE bids
    SET is_auto_bid = FALSE, max_bid_amount = NULL, updated_at = NOW()
    WHERE auction_id = :auction_id
      AND bidder_id = :bidder_id
      AND is_auto_bid = TRUE
      AND is_proxy_bid = FALSE
      AND (CAST(:keep_bid_id AS TEXT) IS NULL OR id <> CAST(:keep_bid_id AS TEXT))
""")

_LIST_BY_AUCTION_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids
    WHERE auction_id = :auction_id
    ORDER BY amount DESC, created_at ASC
    LIMIT :limit
""")

_STATS_SQL = text("""
    SELECT COUNT(*)                                        AS total_bids,
           COUNT(DISTINCT bidder_id)                       AS unique_bidders,
           MAX(amount)                                     AS highest_bid,
           MIN(amount)                                     AS lowest_bid,
           FLOOR(AVG(amount))                              AS average_bid,
           COUNT(*) FILTER (WHERE is_auto_bid OR is_proxy_bid) AS auto_bids
    FROM bids
    WHERE auction_id = :auction_id
""")

_LIST_BY_BIDDER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids
    WHERE bidder_id = :bidder_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_bid(row: Any) -> Bid:
    """Convert a DB result row to a Bid domain object."""
    return Bid(
        id=row.id,
        auction_id=row.auction_id,
        bidder_id=row.bidder_id,
        amount=row.amount,
        increment_used=row.increment_used,
        is_auto_bid=row.is_auto_bid,
        max_bid_amount=row.max_bid_amount,
        is_proxy_bid=row.is_proxy_bid,
        proxy_bidder_id=row.proxy_bidder_id,
        hold_amount=row.hold_amount,
        hold_released=row.hold_released,
        hold_release_date=row.hold_release_date,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BidRepository:
    """Concrete implementation of BidRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, bid: Bid) -> None:
        await db.execute(
            _INSERT_BID_SQL,
            {
                "id": bid.id,
                "auction_id": bid.auction_id,
                "bidder_id": bid.bidder_id,
                "amount": bid.amount,
                "increment_used": bid.increment_used,
                "is_auto_bid": bid.is_auto_bid,
                "max_bid_amount": bid.max_bid_amount,
                "is_proxy_bid": bid.is_proxy_bid,
                "proxy_bidder_id": bid.proxy_bidder_id,
                "hold_amount": bid.hold_amount,
                "status": BidStatus(bid.status).value,
                "created_at": bid.created_at,
            },
        )

    async def get_by_id(self, db: AsyncSession, bid_id: str) -> Bid | None:
        row = (await db.execute(_GET_BID_SQL, {"id": bid_id})).fetchone()
        return _row_to_bid(row) if row else None

    async def mark_winning(self, db: AsyncSession, auction_id: str, bid_id: str) -> None:
        await db.execute(_MARK_OTHERS_OUTBID_SQL, {"auction_id": auction_id, "bid_id": bid_id})
        await db.execute(_MARK_WINNING_SQL, {"bid_id": bid_id})

    async def settle_statuses(
        self, db: AsyncSession, auction_id: str, winner_id: str | None
    ) -> None:
        await db.execute(
            _SETTLE_STATUSES_SQL, {"auction_id": auction_id, "winner_id": winner_id}
        )

    async def list_pending_releases(
        self, db: AsyncSession, auction_id: str | None, limit: int
    ) -> list[Bid]:
        result = await db.execute(
            _LIST_PENDING_RELEASES_SQL, {"auction_id": auction_id, "limit": limit}
        )
        return [_row_to_bid(row) for row in result.fetchall()]

    async def mark_hold_released(
        self, db: AsyncSession, bid_id: str, released_at: datetime
    ) -> None:
        await db.execute(
            _MARK_HOLD_RELEASED_SQL, {"bid_id": bid_id, "released_at": released_at}
        )

    async def list_standing_auto_bids(self, db: AsyncSession, auction_id: str) -> list[Bid]:
        result = await db.execute(_LIST_STANDING_AUTO_BIDS_SQL, {"auction_id": auction_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def update_auto_settings(
        self,
        db: AsyncSession,
        bid_id: str,
        is_auto_bid: bool,
        max_bid_amount: int | None,
    ) -> None:
        await db.execute(
            _UPDATE_AUTO_SETTINGS_SQL,
            {"bid_id": bid_id, "is_auto_bid": is_auto_bid, "max_bid_amount": max_bid_amount},
        )

    async def clear_auto_registrations(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder_id: str,
        keep_bid_id: str | None = None,
    ) -> int:
        result: Any = await db.execute(
            _CLEAR_AUTO_REGISTRATIONS_SQL,
            {"auction_id": auction_id, "bidder_id": bidder_id, "keep_bid_id": keep_bid_id},
        )
        return result.rowcount or 0

    async def list_by_auction(
        self, db: AsyncSession, auction_id: str, limit: int
    ) -> list[Bid]:
        result = await db.execute(
            _LIST_BY_AUCTION_SQL, {"auction_id": auction_id, "limit": limit}
        )
        return [_row_to_bid(row) for row in result.fetchall()]

    async def get_stats(self, db: AsyncSession, auction_id: str) -> BidStats:
        row: Any = (await db.execute(_STATS_SQL, {"auction_id": auction_id})).fetchone()
        total = int(row.total_bids) if row else 0
        if total == 0:
            return BidStats()
        auto = int(row.auto_bids)
        return BidStats(
            total_bids=total,
            unique_bidders=int(row.unique_bidders),
            highest_bid=int(row.highest_bid),
            lowest_bid=int(row.lowest_bid),
            average_bid=int(row.average_bid),
            auto_bids=auto,
            manual_bids=total - auto,
        )

    async def list_by_bidder(
        self,
        db: AsyncSession,
        bidder_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Bid]:
        result = await db.execute(
            _LIST_BY_BIDDER_SQL,
            {
                "bidder_id": bidder_id,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_bid(row) for row in result.fetchall()]
