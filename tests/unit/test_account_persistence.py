# tests/unit/test_account_persistence.py
"""Unit tests for AccountRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.au_account.infrastructure.persistence import AccountRepository
from src.au_common.errors import (
    BidderNotFoundError,
    HoldReleaseError,
    InsufficientBalanceError,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _account_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "acc-1")
    row.user_id = kwargs.get("user_id", "user-1")
    row.available_balance = kwargs.get("available_balance", 970)
    row.held_balance = kwargs.get("held_balance", 30)
    row.version = kwargs.get("version", 1)
    row.created_at = NOW
    row.updated_at = NOW
    return row


def _ledger_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", 7)
    row.user_id = kwargs.get("user_id", "user-1")
    row.entry_type = kwargs.get("entry_type", "BID_HOLD")
    row.amount = kwargs.get("amount", -30)
    row.balance_after = kwargs.get("balance_after", 970)
    row.reference_type = kwargs.get("reference_type", "BID")
    row.reference_id = kwargs.get("reference_id", "b1")
    row.description = kwargs.get("description", "20% bid hold")
    row.created_at = NOW
    return row


def _results(*rows: MagicMock | None) -> list[MagicMock]:
    out = []
    for row in rows:
        result = MagicMock()
        result.fetchone.return_value = row
        out.append(result)
    return out


class TestHold:
    async def test_hold_journals_a_debit(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(_account_row(), _ledger_row())

        account = await AccountRepository().hold(db, "user-1", 30, "b1")

        assert account.available_balance == 970
        assert account.held_balance == 30
        hold_params = db.execute.await_args_list[0].args[1]
        assert hold_params == {"user_id": "user-1", "amount": 30}
        journal = db.execute.await_args_list[1].args[1]
        assert journal["entry_type"] == "BID_HOLD"
        assert journal["amount"] == -30
        assert journal["reference_type"] == "BID"
        assert journal["reference_id"] == "b1"
        assert journal["balance_after"] == 970

    async def test_hold_short_reports_available(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(None, _account_row(available_balance=20))

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await AccountRepository().hold(db, "user-1", 30, "b1")

        assert exc_info.value.details == {"required_balance": 30, "current_balance": 20}
        assert db.execute.await_count == 2

    async def test_hold_unknown_user(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(None, None)

        with pytest.raises(BidderNotFoundError):
            await AccountRepository().hold(db, "ghost", 30, "b1")


class TestReleaseAndTopUp:
    async def test_release_journals_a_credit(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(
            _account_row(available_balance=1_000, held_balance=0),
            _ledger_row(entry_type="BID_HOLD_RELEASE", amount=30, balance_after=1_000),
        )

        account = await AccountRepository().release(db, "user-1", 30, "b1")

        assert account.available_balance == 1_000
        journal = db.execute.await_args_list[1].args[1]
        assert journal["entry_type"] == "BID_HOLD_RELEASE"
        assert journal["amount"] == 30

    async def test_release_without_matching_hold(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(None)

        with pytest.raises(HoldReleaseError):
            await AccountRepository().release(db, "user-1", 30, "b1")

    async def test_deposit_returns_entry(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(
            _account_row(available_balance=1_500),
            _ledger_row(entry_type="DEPOSIT", amount=500, reference_type="DEPOSIT",
                        reference_id=None, balance_after=1_500),
        )

        account, entry = await AccountRepository().deposit(db, "user-1", 500)

        assert account.available_balance == 1_500
        assert entry.id == 7
        assert entry.entry_type == "DEPOSIT"

    async def test_deposit_unknown_user(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(None)

        with pytest.raises(BidderNotFoundError):
            await AccountRepository().deposit(db, "ghost", 500)

    async def test_withdraw_journals_negative_amount(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = _results(
            _account_row(available_balance=500),
            _ledger_row(entry_type="WITHDRAW", amount=-500, reference_type="WITHDRAW",
                        reference_id=None, balance_after=500),
        )

        await AccountRepository().withdraw(db, "user-1", 500)

        journal = db.execute.await_args_list[1].args[1]
        assert journal["amount"] == -500
        assert journal["reference_id"] is None
