"""Request/response models for the au_account API."""

import base64
import binascii

from pydantic import BaseModel, Field

from src.au_account.domain.models import Account, LedgerEntry
from src.au_common.amounts import amount_to_display

_CURSOR_PREFIX = "ledger:"


def cursor_encode(last_id: int) -> str:
    """Opaque, URL-safe cursor for the last ledger entry id on a page."""
    return base64.urlsafe_b64encode(f"{_CURSOR_PREFIX}{last_id}".encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Inverse of cursor_encode; an unreadable cursor restarts from the newest entry."""
    if not cursor:
        return None
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not raw.startswith(_CURSOR_PREFIX):
        return None
    try:
        return int(raw[len(_CURSOR_PREFIX):])
    except ValueError:
        return None


class DepositRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Whole currency units to credit")


class WithdrawRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Whole currency units to debit")


class BalanceResponse(BaseModel):
    user_id: str
    available_balance: int
    available_balance_display: str
    held_balance: int
    held_balance_display: str
    total_balance: int

    @classmethod
    def from_amounts(cls, user_id: str, available: int, held: int) -> "BalanceResponse":
        return cls(
            user_id=user_id,
            available_balance=available,
            available_balance_display=amount_to_display(available),
            held_balance=held,
            held_balance_display=amount_to_display(held),
            total_balance=available + held,
        )


class BalanceChangeResponse(BaseModel):
    available_balance: int
    available_balance_display: str
    amount: int  # signed: negative for a withdrawal
    ledger_entry_id: int

    @classmethod
    def from_result(cls, account: Account, entry: LedgerEntry) -> "BalanceChangeResponse":
        return cls(
            available_balance=account.available_balance,
            available_balance_display=amount_to_display(account.available_balance),
            amount=entry.amount,
            ledger_entry_id=entry.id,
        )


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    amount_display: str
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            amount=entry.amount,
            amount_display=amount_to_display(entry.amount),
            balance_after=entry.balance_after,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
