"""005: create bids table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id                  VARCHAR(64)  PRIMARY KEY,
            auction_id          VARCHAR(64)  NOT NULL REFERENCES auctions (id),
            bidder_id           VARCHAR(64)  NOT NULL,
            amount              BIGINT       NOT NULL,
            increment_used      BIGINT       NOT NULL DEFAULT 0,
            is_auto_bid         BOOLEAN      NOT NULL DEFAULT FALSE,
            max_bid_amount      BIGINT,
            is_proxy_bid        BOOLEAN      NOT NULL DEFAULT FALSE,
            proxy_bidder_id     VARCHAR(64),
            hold_amount         BIGINT       NOT NULL DEFAULT 0,
            hold_released       BOOLEAN      NOT NULL DEFAULT FALSE,
            hold_release_date   TIMESTAMPTZ,
            status              VARCHAR(20)  NOT NULL DEFAULT 'ACTIVE',
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_status CHECK (
                status IN ('ACTIVE', 'OUTBID', 'WINNING', 'WON', 'LOST')
            ),
            CONSTRAINT ck_bids_amount_gte_1   CHECK (amount >= 1),
            CONSTRAINT ck_bids_hold_rate      CHECK (hold_amount = fn_bid_hold(amount)),
            CONSTRAINT ck_bids_auto_max       CHECK (
                NOT is_auto_bid OR max_bid_amount IS NOT NULL
            ),
            CONSTRAINT ck_bids_proxy_owner    CHECK (
                NOT is_proxy_bid OR proxy_bidder_id = bidder_id
            ),
            CONSTRAINT ck_bids_release_date   CHECK (
                NOT hold_released OR hold_release_date IS NOT NULL
            )
        );
    """)
    op.execute("CREATE INDEX idx_bids_auction_amount ON bids (auction_id, amount DESC);")
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id, id DESC);")
    # At most one WINNING bid per auction
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_one_winning
        ON bids (auction_id)
        WHERE status = 'WINNING';
    """)
    op.execute("""
        CREATE INDEX idx_bids_standing_auto
        ON bids (auction_id, bidder_id, created_at DESC)
        WHERE is_auto_bid AND NOT is_proxy_bid;
    """)
    op.execute("""
        CREATE INDEX idx_bids_pending_release
        ON bids (created_at)
        WHERE status = 'LOST' AND NOT hold_released AND hold_amount > 0;
    """)
    op.execute("""
        CREATE TRIGGER trg_bids_updated_at
            BEFORE UPDATE ON bids
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
