"""Balance records of the user store, as seen by the bidding core."""

from dataclasses import dataclass
from datetime import datetime

from src.au_common.amounts import hold_amount


@dataclass
class Account:
    id: str
    user_id: str
    available_balance: int  # spendable; holds are debited from here when taken
    held_balance: int       # open holds, kept for audit
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_balance(self) -> int:
        return self.available_balance + self.held_balance

    def covers_hold(self, bid_amount: int) -> bool:
        return self.available_balance >= hold_amount(bid_amount)


@dataclass
class LedgerEntry:
    """One journal row; ``amount`` is signed (debits negative)."""

    id: int
    user_id: str
    entry_type: str
    amount: int
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
