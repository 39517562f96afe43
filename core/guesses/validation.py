"""
Guess Validation - Boundary Checks Before the FMV Engine

The engine treats bad numbers as an unchecked precondition, so every
value is checked here first. No fallback or clamped values are ever
inserted: invalid input is rejected.
"""

from __future__ import annotations

import math
from typing import Any, Final, Optional

from core.fmv_engine import WeightedGuess
from core.guesses.errors import GuessValidationError


# =============================================================================
# Constants
# =============================================================================

# Guess / WOZ ratio bounds outside which a guess counts as a meme
MEME_RATIO_LOW: Final[float] = 0.2
MEME_RATIO_HIGH: Final[float] = 5.0


# =============================================================================
# Validation Functions
# =============================================================================


def validate_guessed_price(price: Any) -> float:
    """
    Validate a guessed price.

    Args:
        price: Raw price value

    Returns:
        The price, unchanged

    Raises:
        GuessValidationError: If price is not a finite number > 0
    """
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise GuessValidationError("guessed_price", "must be a number")
    if not math.isfinite(price):
        raise GuessValidationError("guessed_price", "must be finite")
    if price <= 0:
        raise GuessValidationError("guessed_price", "must be positive")
    return price


def validate_karma(karma: Any) -> int:
    """
    Validate a guesser's karma score. Negative karma is allowed.

    Raises:
        GuessValidationError: If karma is not an integer
    """
    if isinstance(karma, bool) or not isinstance(karma, int):
        raise GuessValidationError("karma", "must be an integer")
    return karma


def is_meme_guess(guessed_price: float, woz_value: Optional[float]) -> bool:
    """
    Check whether a guess is a joke rather than an opinion.

    A guess below 20% or above 500% of the WOZ value is a meme.
    Without a positive WOZ value nothing is flagged.
    """
    if not woz_value or woz_value <= 0:
        return False

    ratio = guessed_price / woz_value
    return ratio < MEME_RATIO_LOW or ratio > MEME_RATIO_HIGH


def to_weighted_guess(guessed_price: Any, karma: Any) -> WeightedGuess:
    """
    Build a validated WeightedGuess for the FMV Engine.

    Raises:
        GuessValidationError: If either value is invalid
    """
    return WeightedGuess(
        guessed_price=validate_guessed_price(guessed_price),
        karma=validate_karma(karma),
    )
