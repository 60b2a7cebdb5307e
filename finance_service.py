"""
Money formatting and budget checks.

Shared by every command that reports money:
- currency formatting;
- overspending / low-balance alerts;
- the balance summary block.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


DEFAULT_CURRENCY = "₹"
LOW_BALANCE_RATIO = Decimal("0.2")
CENTS = Decimal("0.01")


def format_currency(amount: Decimal, symbol: str = DEFAULT_CURRENCY) -> str:
    """Symbol prefix plus exactly two decimals, no thousands separators."""
    return f"{symbol}{Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)}"


def balance_alert(
    available: Decimal,
    total: Decimal,
    symbol: str = DEFAULT_CURRENCY,
    still: bool = False,
) -> str:
    """
    Warning prefix for a budget, or an empty string when nothing is wrong.

    ``still`` rewords the overspending warning for replies to a deletion that
    did not bring the user back under budget.
    """
    remaining = available - total
    if remaining < 0:
        verb = "still overspending" if still else "overspending"
        return (
            f"⚠️ WARNING: You're {verb}!\n"
            f"You've exceeded your budget by {format_currency(abs(remaining), symbol)}\n\n"
        )
    if remaining < available * LOW_BALANCE_RATIO:
        return (
            "⚠️ ALERT: You're close to your budget limit!\n"
            f"Only {format_currency(remaining, symbol)} remaining\n\n"
        )
    return ""


def balance_message(available: Decimal, total: Decimal, symbol: str = DEFAULT_CURRENCY) -> str:
    remaining = available - total
    return (
        balance_alert(available, total, symbol)
        + "💰 Balance Summary:\n\n"
        + f"Available Money: {format_currency(available, symbol)}\n"
        + f"Total Expenses: {format_currency(total, symbol)}\n"
        + f"Remaining Balance: {format_currency(remaining, symbol)}"
    )
