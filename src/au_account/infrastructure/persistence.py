"""AccountRepository: concrete implementation of AccountRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows means a business constraint was violated (insufficient funds)
or the account does not exist. Concurrent holds on the same user are serialised
by the row lock taken by the UPDATE, so check-then-debit cannot race.

Transaction ownership: The CALLER (application service or engine) is responsible
for starting and committing the transaction.
"""

from typing import Any

from sqlalchemy import TextClause, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.domain.models import Account, LedgerEntry
from src.au_common.enums import LedgerEntryType
from src.au_common.errors import (
    BidderNotFoundError,
    HoldReleaseError,
    InsufficientBalanceError,
    InternalError,
)

# ---------------------------------------------------------------------------
# SQL: accounts mutations
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "id, user_id, available_balance, held_balance, version, created_at, updated_at"

_DEPOSIT_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_WITHDRAW_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_HOLD_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance - :amount,
        held_balance      = held_balance      + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_RELEASE_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance + :amount,
        held_balance      = held_balance      - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND held_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = CAST(:entry_type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

# Ledger reference types
REF_DEPOSIT = "DEPOSIT"
REF_WITHDRAW = "WITHDRAW"
REF_BID = "BID"


def _row_to_account(row: Any) -> Account:
    return Account(
        id=str(row.id),
        user_id=row.user_id,
        available_balance=row.available_balance,
        held_balance=row.held_balance,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        amount=row.amount,
        balance_after=row.balance_after,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        description=row.description,
        created_at=row.created_at,
    )


class AccountRepository:
    """Every mutation is one conditional UPDATE plus one journal row."""

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})).fetchone()
        return _row_to_account(row) if row else None

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]:
        account = await self._mutate(db, _DEPOSIT_SQL, user_id, amount)
        if account is None:
            raise BidderNotFoundError(user_id)
        entry = await self._journal(
            db, account, LedgerEntryType.DEPOSIT, amount, REF_DEPOSIT, None, "Balance top-up"
        )
        return account, entry

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]:
        account = await self._mutate(db, _WITHDRAW_SQL, user_id, amount)
        if account is None:
            raise await self._shortfall(db, user_id, amount)
        entry = await self._journal(
            db, account, LedgerEntryType.WITHDRAW, -amount, REF_WITHDRAW, None, "Balance withdrawal"
        )
        return account, entry

    async def hold(
        self, db: AsyncSession, user_id: str, amount: int, bid_id: str
    ) -> Account:
        account = await self._mutate(db, _HOLD_SQL, user_id, amount)
        if account is None:
            raise await self._shortfall(db, user_id, amount)
        await self._journal(
            db, account, LedgerEntryType.BID_HOLD, -amount, REF_BID, bid_id, "20% bid hold"
        )
        return account

    async def release(
        self, db: AsyncSession, user_id: str, amount: int, bid_id: str
    ) -> Account:
        account = await self._mutate(db, _RELEASE_SQL, user_id, amount)
        if account is None:
            raise HoldReleaseError(user_id, amount)
        await self._journal(
            db, account, LedgerEntryType.BID_HOLD_RELEASE, amount, REF_BID, bid_id,
            "Bid hold released",
        )
        return account

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def _mutate(
        self, db: AsyncSession, sql: TextClause, user_id: str, amount: int
    ) -> Account | None:
        row = (await db.execute(sql, {"user_id": user_id, "amount": amount})).fetchone()
        return _row_to_account(row) if row else None

    async def _shortfall(
        self, db: AsyncSession, user_id: str, required: int
    ) -> InsufficientBalanceError | BidderNotFoundError:
        account = await self.get_account_by_user_id(db, user_id)
        if account is None:
            return BidderNotFoundError(user_id)
        return InsufficientBalanceError(required, account.available_balance)

    async def _journal(
        self,
        db: AsyncSession,
        account: Account,
        entry_type: LedgerEntryType,
        signed_amount: int,
        reference_type: str,
        reference_id: str | None,
        description: str,
    ) -> LedgerEntry:
        row = (
            await db.execute(
                _INSERT_LEDGER_SQL,
                {
                    "user_id": account.user_id,
                    "entry_type": entry_type.value,
                    "amount": signed_amount,
                    "balance_after": account.available_balance,
                    "reference_type": reference_type,
                    "reference_id": reference_id,
                    "description": description,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no row")
        return _row_to_ledger(row)
