"""
Formatting utilities.
"""

from typing import Optional

from core.fmv_engine import round_half_up


def format_currency(amount: Optional[float], currency: str = "EUR") -> str:
    """
    Format an amount as currency.

    Args:
        amount: The amount in whole units (e.g., euros, not cents).
        currency: Currency code (default EUR).

    Returns:
        Formatted currency string rounded half up, or "n/a" for a
        missing amount.
    """
    if amount is None:
        return "n/a"
    symbols = {
        "EUR": "€",
        "GBP": "£",
        "USD": "$",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{round_half_up(amount):,}"


def format_percent(value: Optional[float], decimals: int = 1, signed: bool = False) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.
        signed: Always show the sign (for divergence).

    Returns:
        Formatted percentage string, or "n/a" for a missing value.
    """
    if value is None:
        return "n/a"
    sign = "+" if signed else ""
    return f"{value:{sign}.{decimals}f}%"
