"""
Percentile distribution of raw guesses.
"""

from typing import List, Optional, Sequence

from .models import FmvDistribution
from .statistics import round_half_up


def percentile(sorted_prices: List[float], p: float) -> float:
    """
    Linearly interpolated percentile of an ascending list.

    Fractional index i = (p / 100) * (n - 1); values between two
    positions are interpolated.
    """
    index = (p / 100) * (len(sorted_prices) - 1)
    lower = int(index)
    upper = lower if index == lower else lower + 1

    if lower == upper:
        return sorted_prices[lower]

    frac = index - lower
    return sorted_prices[lower] * (1 - frac) + sorted_prices[upper] * frac


def calculate_distribution(prices: Sequence[float]) -> Optional[FmvDistribution]:
    """
    Calculate the opinion spread over all guessed prices.

    Args:
        prices: Raw guessed prices, any order

    Returns:
        FmvDistribution, or None for no prices
    """
    if not prices:
        return None

    ordered = sorted(prices)

    return FmvDistribution(
        p10=round_half_up(percentile(ordered, 10)),
        p25=round_half_up(percentile(ordered, 25)),
        p50=round_half_up(percentile(ordered, 50)),
        p75=round_half_up(percentile(ordered, 75)),
        p90=round_half_up(percentile(ordered, 90)),
        min=ordered[0],
        max=ordered[-1],
    )
