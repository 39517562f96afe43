"""
Crowd FMV Engine - Core Business Logic

This module provides the Fair Market Value pipeline:
1. Boundary validation (WeightedGuess built only from valid input)
2. Outlier trimming (2 SD from the karma-weighted mean)
3. Crowd estimate (karma-weighted mean)
4. WOZ blending by confidence tier
5. Distribution & divergence against asking price

Karma, the weighting input, is rescored from resolved guesses once a
property sells.
"""

# FMV Engine v1.0 - pure computation
from .fmv_engine import (
    WeightedGuess,
    FmvDistribution,
    FmvConfidence,
    FmvResult,
    karma_weighted_mean,
    standard_deviation,
    trim_outliers,
    calculate_distribution,
    get_confidence,
    blend_fmv,
    calculate_divergence,
    estimate_fmv,
)

# Guess service layer
from .guesses import (
    GuessError,
    GuessValidationError,
    PropertyNotFoundError,
    GuessCooldownError,
    GuessProperty,
    Listing,
    ListingStatus,
    Guesser,
    PriceGuess,
    GuessRepository,
    get_guess_repository,
    FmvService,
    KarmaScore,
    get_karma_rank,
    calculate_karma,
)

__all__ = [
    # FMV Engine v1.0
    "WeightedGuess",
    "FmvDistribution",
    "FmvConfidence",
    "FmvResult",
    "karma_weighted_mean",
    "standard_deviation",
    "trim_outliers",
    "calculate_distribution",
    "get_confidence",
    "blend_fmv",
    "calculate_divergence",
    "estimate_fmv",
    # Guess service layer
    "GuessError",
    "GuessValidationError",
    "PropertyNotFoundError",
    "GuessCooldownError",
    "GuessProperty",
    "Listing",
    "ListingStatus",
    "Guesser",
    "PriceGuess",
    "GuessRepository",
    "get_guess_repository",
    "FmvService",
    "KarmaScore",
    "get_karma_rank",
    "calculate_karma",
]
