"""004: create auctions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auctions (
            id                  VARCHAR(64)  PRIMARY KEY,
            title               VARCHAR(200) NOT NULL,
            description         TEXT,
            seller_id           VARCHAR(64)  NOT NULL,
            starting_price      BIGINT       NOT NULL,
            current_price       BIGINT       NOT NULL,
            reserve_price       BIGINT,
            buy_it_now_price    BIGINT,
            bid_increment       BIGINT       NOT NULL DEFAULT 100,
            start_time          TIMESTAMPTZ  NOT NULL,
            end_time            TIMESTAMPTZ  NOT NULL,
            auto_extend_enabled BOOLEAN      NOT NULL DEFAULT TRUE,
            auto_extend_seconds INTEGER      NOT NULL DEFAULT 300,
            status              VARCHAR(20)  NOT NULL DEFAULT 'DRAFT',
            highest_bidder_id   VARCHAR(64),
            highest_bid_id      VARCHAR(64),
            winner_id           VARCHAR(64),
            final_price         BIGINT,
            total_bids          INTEGER      NOT NULL DEFAULT 0,
            version             BIGINT       NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_auctions_status CHECK (
                status IN ('DRAFT', 'SCHEDULED', 'ACTIVE', 'ENDED', 'SOLD', 'CANCELLED')
            ),
            CONSTRAINT ck_auctions_starting_price  CHECK (starting_price >= 1),
            CONSTRAINT ck_auctions_current_price   CHECK (current_price >= starting_price),
            CONSTRAINT ck_auctions_bid_increment   CHECK (bid_increment >= 1),
            CONSTRAINT ck_auctions_window          CHECK (end_time > start_time),
            CONSTRAINT ck_auctions_reserve         CHECK (
                reserve_price IS NULL OR reserve_price >= starting_price
            ),
            CONSTRAINT ck_auctions_buy_it_now      CHECK (
                buy_it_now_price IS NULL OR buy_it_now_price > starting_price
            ),
            CONSTRAINT ck_auctions_winner_final    CHECK (
                winner_id IS NULL OR status IN ('ENDED', 'SOLD')
            ),
            CONSTRAINT ck_auctions_total_bids_gte_0 CHECK (total_bids >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_auctions_open_end
        ON auctions (end_time)
        WHERE status IN ('SCHEDULED', 'ACTIVE');
    """)
    op.execute("""
        CREATE INDEX idx_auctions_scheduled_start
        ON auctions (start_time)
        WHERE status = 'SCHEDULED';
    """)
    op.execute("CREATE INDEX idx_auctions_seller ON auctions (seller_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_auctions_updated_at
            BEFORE UPDATE ON auctions
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auctions CASCADE;")
