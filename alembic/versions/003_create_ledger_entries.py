"""003: create ledger_entries table

Signed amounts: holds and withdrawals are negative, releases and deposits
positive. Bid entries always point at the bid that took or returned the hold.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(20)     NOT NULL,
            reference_id    VARCHAR(64),
            description     VARCHAR(200),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entry_sign CHECK (
                (entry_type IN ('DEPOSIT', 'BID_HOLD_RELEASE') AND amount > 0)
                OR (entry_type IN ('WITHDRAW', 'BID_HOLD') AND amount < 0)
            ),
            CONSTRAINT ck_ledger_reference CHECK (
                (reference_type = 'BID' AND reference_id IS NOT NULL
                    AND entry_type IN ('BID_HOLD', 'BID_HOLD_RELEASE'))
                OR (reference_type IN ('DEPOSIT', 'WITHDRAW') AND reference_type = entry_type)
            ),
            CONSTRAINT ck_ledger_balance_after_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_user_id_desc ON ledger_entries (user_id, id DESC);")
    # At most one hold and one release per bid
    op.execute("""
        CREATE UNIQUE INDEX uq_ledger_bid_entry
        ON ledger_entries (reference_id, entry_type)
        WHERE reference_type = 'BID';
    """)
    op.execute(
        "COMMENT ON TABLE ledger_entries IS "
        "'Append-only balance journal: deposits, withdrawals, bid holds and releases';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
