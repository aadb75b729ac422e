"""The user balance store the bidding core depends on.

AccountRepository implements it over PostgreSQL; engine tests use an
in-memory fake. Implementations never commit: the caller owns the transaction.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def hold(
        self, db: AsyncSession, user_id: str, amount: int, bid_id: str
    ) -> Account:
        """Debit ``amount`` for ``bid_id`` in one conditional UPDATE.

        Raises InsufficientBalanceError without touching the row when the
        available balance is short.
        """
        ...

    async def release(
        self, db: AsyncSession, user_id: str, amount: int, bid_id: str
    ) -> Account:
        """Credit a hold back. Whether it was already released is tracked on the bid."""
        ...

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]: ...

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
