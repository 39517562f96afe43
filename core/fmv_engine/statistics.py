"""
Numeric routines for the FMV Engine.

Implements:
- Half-up rounding used for all monetary values
- Karma-weighted mean
- Population standard deviation
- Outlier trimming (2 standard deviations from the weighted mean)
"""

import logging
import math
from typing import List, Sequence

from .models import WeightedGuess


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Trimming needs a minimum sample to mean anything
MIN_GUESSES_FOR_TRIM = 3

# Band around the weighted mean, in standard deviations
OUTLIER_SD_BAND = 2


def round_half_up(value: float) -> int:
    """
    Round to the nearest whole unit, halves rounded up.

    Built-in round() uses banker's rounding, which would shift
    results like 430000.5 down to 430000.
    """
    return math.floor(value + 0.5)


def karma_weighted_mean(guesses: Sequence[WeightedGuess]) -> float:
    """
    Calculate the karma-weighted mean guessed price.

    Weight = max(1, karma) so every guess counts at least once.

    Args:
        guesses: Guesses to aggregate

    Returns:
        Weighted mean (0 for an empty list)
    """
    if not guesses:
        return 0.0

    total_weight = 0
    weighted_sum = 0.0

    for guess in guesses:
        weighted_sum += guess.guessed_price * guess.weight
        total_weight += guess.weight

    return weighted_sum / total_weight if total_weight > 0 else 0.0


def standard_deviation(prices: Sequence[float]) -> float:
    """
    Unweighted population standard deviation.

    Used only for outlier screening, never reported.

    Returns:
        Standard deviation (0 for fewer than 2 prices)
    """
    if len(prices) < 2:
        return 0.0

    mean = sum(prices) / len(prices)
    variance = sum((p - mean) ** 2 for p in prices) / len(prices)

    return math.sqrt(variance)


def trim_outliers(guesses: Sequence[WeightedGuess]) -> List[WeightedGuess]:
    """
    Remove guesses beyond 2 standard deviations of the weighted mean.

    Mean and deviation are both taken over the untrimmed set.
    If every guess would be trimmed, the full set is returned instead
    so the pipeline never runs on an empty set.

    Args:
        guesses: Guesses to clean

    Returns:
        New list with outliers removed
    """
    if len(guesses) < MIN_GUESSES_FOR_TRIM:
        return list(guesses)

    mean = karma_weighted_mean(guesses)
    sd = standard_deviation([g.guessed_price for g in guesses])

    # All prices identical
    if sd == 0:
        return list(guesses)

    kept = [
        g for g in guesses
        if abs(g.guessed_price - mean) <= OUTLIER_SD_BAND * sd
    ]

    if not kept:
        logger.debug("Outlier trim removed all %d guesses, using full set", len(guesses))
        return list(guesses)

    if len(kept) < len(guesses):
        logger.debug("Trimmed %d of %d guesses as outliers", len(guesses) - len(kept), len(guesses))

    return kept
