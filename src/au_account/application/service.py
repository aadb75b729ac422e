"""AccountApplicationService: balance reads and top-ups for bidders.

Holds and releases are not exposed here; only the bidding engine takes and
returns them, inside its own transaction.
"""

from collections.abc import Awaitable

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.application.schemas import (
    BalanceChangeResponse,
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.au_account.domain.models import Account, LedgerEntry
from src.au_account.domain.repository import AccountRepositoryProtocol
from src.au_account.infrastructure.persistence import AccountRepository
from src.au_common.errors import BidderNotFoundError


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise BidderNotFoundError(user_id)
        return BalanceResponse.from_amounts(
            user_id=user_id,
            available=account.available_balance,
            held=account.held_balance,
        )

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> BalanceChangeResponse:
        return await self._apply(db, self._repo.deposit(db, user_id, amount))

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> BalanceChangeResponse:
        return await self._apply(db, self._repo.withdraw(db, user_id, amount))

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        # One extra row tells us whether another page exists
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_decode(cursor), limit + 1, entry_type
        )
        page = entries[:limit]
        has_more = len(entries) > limit
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )

    async def _apply(
        self, db: AsyncSession, change: Awaitable[tuple[Account, LedgerEntry]]
    ) -> BalanceChangeResponse:
        try:
            account, entry = await change
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return BalanceChangeResponse.from_result(account, entry)
