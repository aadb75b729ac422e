"""Integer arithmetic for auction amounts and bid holds.

All prices, bids and balances are whole currency units (int). No float, no Decimal.
"""

HOLD_RATE_BPS: int = 2000  # 20% of every bid amount is held


def hold_amount(amount: int) -> int:
    """Hold for a bid of ``amount``, rounded up so the platform is never short.

    hold = ceil(amount * HOLD_RATE_BPS / 10000)
    Using integer ceiling: (a + b - 1) // b
    """
    if amount <= 0:
        return 0
    return (amount * HOLD_RATE_BPS + 9999) // 10000


def validate_amount(amount: int) -> None:
    """Validate that an amount is a positive whole number."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
        raise ValueError(f"Amount must be a positive integer, got {amount!r}")


def amount_to_display(amount: int) -> str:
    """Convert a whole-naira amount to display string: 150000 -> '₦150,000'."""
    if amount < 0:
        return f"-₦{-amount:,}"
    return f"₦{amount:,}"
