"""
FMV Engine v1.0

Crowd-sourced Fair Market Value estimation. Turns karma-weighted price
guesses plus the official WOZ valuation into a confidence-graded FMV,
a percentile distribution and a divergence against asking price.

Pure computation: no I/O, no state, no validation of inputs.
"""

from .models import (
    WeightedGuess,
    FmvDistribution,
    FmvConfidence,
    FmvResult,
)
from .statistics import (
    round_half_up,
    karma_weighted_mean,
    standard_deviation,
    trim_outliers,
)
from .distribution import calculate_distribution
from .valuation import (
    get_confidence,
    blend_fmv,
    calculate_divergence,
    estimate_fmv,
)

__all__ = [
    # Models
    "WeightedGuess",
    "FmvDistribution",
    "FmvConfidence",
    "FmvResult",
    # Numeric routines
    "round_half_up",
    "karma_weighted_mean",
    "standard_deviation",
    "trim_outliers",
    "calculate_distribution",
    # Pipeline
    "get_confidence",
    "blend_fmv",
    "calculate_divergence",
    "estimate_fmv",
]

__version__ = "1.0"
