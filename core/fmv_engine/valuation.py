"""
Valuation pipeline for the FMV Engine.

Implements:
- Confidence tiering from guess count
- WOZ / crowd blending by confidence
- Divergence against asking price
- The full estimate pipeline

Rounding order is fixed: weighted mean -> whole unit, blend -> whole
unit, divergence -> 2 decimals. Reordering changes results.
"""

from typing import Optional, Sequence

from .distribution import calculate_distribution
from .models import FmvConfidence, FmvResult, WeightedGuess
from .statistics import karma_weighted_mean, round_half_up, trim_outliers


# =============================================================================
# Configuration Constants
# =============================================================================

# Guess count thresholds for confidence tiers
LOW_CONFIDENCE_MAX_GUESSES = 2
MEDIUM_CONFIDENCE_MAX_GUESSES = 9

# (WOZ share, crowd share) of the blended FMV, per tier
BLEND_WEIGHTS_LOW = (0.7, 0.3)
BLEND_WEIGHTS_MEDIUM = (0.3, 0.7)


def get_confidence(guess_count: int) -> FmvConfidence:
    """
    Determine confidence tier from the number of guesses offered.

    None: 0
    Low: 1-2
    Medium: 3-9
    High: 10+
    """
    if guess_count <= 0:
        return FmvConfidence.NONE
    if guess_count <= LOW_CONFIDENCE_MAX_GUESSES:
        return FmvConfidence.LOW
    if guess_count <= MEDIUM_CONFIDENCE_MAX_GUESSES:
        return FmvConfidence.MEDIUM
    return FmvConfidence.HIGH


def blend_fmv(
    crowd_estimate: float,
    woz_value: Optional[float],
    confidence: FmvConfidence,
) -> float:
    """
    Blend the WOZ value and the crowd estimate by confidence.

    - none: WOZ only (0 if absent)
    - low: 70% WOZ + 30% crowd
    - medium: 30% WOZ + 70% crowd
    - high: 100% crowd

    Without a positive WOZ value the crowd estimate is used at any
    tier other than none.

    Args:
        crowd_estimate: Rounded weighted mean of the trimmed guesses
        woz_value: Official valuation, if known
        confidence: Tier from get_confidence

    Returns:
        Blended FMV rounded to whole units
    """
    if confidence == FmvConfidence.NONE:
        return woz_value if woz_value is not None else 0

    if not woz_value or woz_value <= 0:
        return crowd_estimate

    if confidence == FmvConfidence.LOW:
        woz_weight, crowd_weight = BLEND_WEIGHTS_LOW
    elif confidence == FmvConfidence.MEDIUM:
        woz_weight, crowd_weight = BLEND_WEIGHTS_MEDIUM
    else:
        return round_half_up(crowd_estimate)

    return round_half_up(woz_value * woz_weight + crowd_estimate * crowd_weight)


def calculate_divergence(
    fmv: Optional[float],
    asking_price: Optional[float],
) -> Optional[float]:
    """
    Calculate divergence between FMV and asking price.

    Divergence% = (FMV - Asking) / Asking * 100, to 2 decimal places

    Positive means FMV above asking (underpriced), negative means
    FMV below asking (overpriced).

    Returns:
        Divergence percentage, or None if either value is missing
        or the asking price is not positive
    """
    if not fmv or not asking_price or asking_price <= 0:
        return None

    return round_half_up(((fmv - asking_price) / asking_price) * 10000) / 100


def estimate_fmv(
    guesses: Sequence[WeightedGuess],
    woz_value: Optional[float],
    asking_price: Optional[float],
) -> FmvResult:
    """
    Compute the FMV estimate for one property.

    Pipeline order:
    1. CONFIDENCE - Tier from the raw guess count
    2. TRIM - Drop outliers (full set kept if trim empties it)
    3. CROWD - Karma-weighted mean of the trimmed set
    4. BLEND - Mix with WOZ by confidence
    5. DISTRIBUTION - Percentiles of all raw guesses
    6. DIVERGENCE - Gap against asking price

    Args:
        guesses: Non-meme guesses with current guesser karma
        woz_value: Official valuation, if known
        asking_price: Active listing asking price, if any

    Returns:
        FmvResult
    """
    guesses = list(guesses)
    confidence = get_confidence(len(guesses))

    # No guesses: WOZ-only result
    if not guesses:
        return FmvResult(
            fmv=woz_value,
            confidence=confidence,
            guess_count=0,
            distribution=None,
            woz_value=woz_value,
            asking_price=asking_price,
            divergence=calculate_divergence(woz_value, asking_price),
        )

    trimmed = trim_outliers(guesses)
    effective = trimmed if trimmed else guesses

    crowd_estimate = round_half_up(karma_weighted_mean(effective))
    fmv = blend_fmv(crowd_estimate, woz_value, confidence)

    # Distribution covers the full opinion spread, not the trimmed set
    distribution = calculate_distribution([g.guessed_price for g in guesses])

    return FmvResult(
        fmv=fmv or None,
        confidence=confidence,
        guess_count=len(guesses),
        distribution=distribution,
        woz_value=woz_value,
        asking_price=asking_price,
        divergence=calculate_divergence(fmv, asking_price),
    )
