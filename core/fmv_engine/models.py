"""
Data models for the FMV Engine.

Defines the crowd guess input, the percentile distribution snapshot
and the confidence-graded FMV result.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FmvConfidence(Enum):
    """
    Confidence tier for an FMV estimate.

    Derived purely from the number of guesses offered (pre-trim):
    None: 0 guesses
    Low: 1-2 guesses
    Medium: 3-9 guesses
    High: 10+ guesses
    """
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class WeightedGuess:
    """
    One contributor's price opinion at evaluation time.

    Built fresh from storage on each evaluation, never persisted by
    the engine.
    """
    guessed_price: float  # Positive monetary amount
    karma: int  # Guesser's reputation score, may be <= 0

    @property
    def weight(self) -> int:
        """Influence of this guess. Reputation below 1 counts as 1."""
        return max(1, self.karma)


@dataclass(frozen=True)
class FmvDistribution:
    """
    Spread of the raw (untrimmed) guesses.

    Percentiles are rounded to whole units, min/max are exact.
    """
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    min: float
    max: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "p10": self.p10,
            "p25": self.p25,
            "p50": self.p50,
            "p75": self.p75,
            "p90": self.p90,
            "min": self.min,
            "max": self.max,
        }


@dataclass(frozen=True)
class FmvResult:
    """
    Fair Market Value estimate for a single property.

    Carries no property identity - that belongs to the caller.
    """
    fmv: Optional[float]
    confidence: FmvConfidence
    guess_count: int
    distribution: Optional[FmvDistribution]

    # Pass-through reference values
    woz_value: Optional[float] = None
    asking_price: Optional[float] = None

    # Signed % gap between FMV and asking price (2 decimals)
    divergence: Optional[float] = None

    @property
    def is_official_only(self) -> bool:
        """True when the FMV is the WOZ value with no crowd input."""
        return self.confidence == FmvConfidence.NONE

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "fmv": self.fmv,
            "confidence": self.confidence.value,
            "guessCount": self.guess_count,
            "distribution": self.distribution.to_dict() if self.distribution else None,
            "wozValue": self.woz_value,
            "askingPrice": self.asking_price,
            "divergence": self.divergence,
        }
