"""002: create accounts table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id                  BIGSERIAL   PRIMARY KEY,
            user_id             VARCHAR(64) NOT NULL,
            available_balance   BIGINT      NOT NULL DEFAULT 0,
            held_balance        BIGINT      NOT NULL DEFAULT 0,
            version             BIGINT      NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_user             UNIQUE (user_id),
            CONSTRAINT ck_accounts_available_nonneg CHECK (available_balance >= 0),
            CONSTRAINT ck_accounts_held_nonneg      CHECK (held_balance >= 0),
            CONSTRAINT ck_accounts_version_nonneg   CHECK (version >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_touch
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute(
        "COMMENT ON COLUMN accounts.available_balance IS "
        "'Spendable whole currency units; a bid hold is debited from here immediately';"
    )
    op.execute(
        "COMMENT ON COLUMN accounts.held_balance IS "
        "'Sum of bid holds not yet released, kept for audit';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
