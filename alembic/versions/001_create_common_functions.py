"""001: shared SQL functions for the auction schema

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # BEFORE UPDATE trigger body shared by accounts, auctions and bids
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # 20% bid hold, rounded up; must agree with au_common.amounts.hold_amount
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_bid_hold(amount BIGINT)
        RETURNS BIGINT AS $$
            SELECT CASE WHEN amount <= 0 THEN 0
                        ELSE (amount * 2000 + 9999) / 10000 END;
        $$ LANGUAGE sql IMMUTABLE;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_bid_hold(BIGINT);")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")
