"""
Karma - Scoring Guessers Against Actual Sale Prices

Karma is earned once a guessed property sells. Each resolved guess is
scored by how far it was from the sale price; new accounts count for
half, and sustained accuracy earns a streak bonus.

All functions here are pure. The FMV service feeds them the resolved
guesses of one user and stores the result on the Guesser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, List, Sequence, Tuple

from core.fmv_engine import round_half_up


# =============================================================================
# Constants
# =============================================================================

# (max deviation, reward), checked in order
ACCURACY_TIERS: Final[Tuple[Tuple[float, int], ...]] = (
    (0.05, 10),
    (0.10, 5),
    (0.20, 2),
)

PENALTY_DEVIATION: Final[float] = 0.50
PENALTY_AMOUNT: Final[int] = -3

# A user's first guesses count for half
NEW_ACCOUNT_THRESHOLD: Final[int] = 5
NEW_ACCOUNT_WEIGHT: Final[float] = 0.5

# Every 5th consecutive guess within 20% earns a bonus
CONSISTENCY_DEVIATION: Final[float] = 0.20
CONSISTENCY_STREAK_LENGTH: Final[int] = 5
CONSISTENCY_BONUS: Final[int] = 2


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class KarmaRank:
    """Public rank title for a karma score."""
    min_karma: int
    title: str
    level: int

    def to_dict(self) -> dict:
        return {"title": self.title, "level": self.level}


# Highest first
KARMA_RANKS: Final[Tuple[KarmaRank, ...]] = (
    KarmaRank(500, "Legende", 6),
    KarmaRank(200, "Meester", 5),
    KarmaRank(100, "Specialist", 4),
    KarmaRank(50, "Kenner", 3),
    KarmaRank(10, "Bewoner", 2),
    KarmaRank(0, "Nieuwkomer", 1),
)


@dataclass(frozen=True)
class AccuracyScore:
    """Reward for one resolved guess."""
    reward: int
    deviation: float


@dataclass(frozen=True)
class ResolvedGuess:
    """A guess on a property that has since sold."""
    guessed_price: float
    actual_price: float
    guess_index: int  # 0-based position in the user's guesses, oldest first


@dataclass(frozen=True)
class KarmaScore:
    """Recalculated karma for one user."""
    karma: int
    internal_karma: int


# =============================================================================
# Scoring
# =============================================================================


def get_karma_rank(karma: int) -> KarmaRank:
    """
    Get the rank title for a karma score.

    Negative karma ranks as 0.
    """
    public_karma = max(0, karma)
    for rank in KARMA_RANKS:
        if public_karma >= rank.min_karma:
            return rank
    return KARMA_RANKS[-1]


def score_guess_accuracy(guessed_price: float, actual_price: float) -> AccuracyScore:
    """
    Score a guess against the actual sale price.

    Args:
        guessed_price: The user's guess
        actual_price: The price the property sold for

    Returns:
        AccuracyScore. Within 5/10/20% earns 10/5/2, beyond 50% costs 3,
        anything in between scores 0. A non-positive sale price scores 0
        with deviation 1.
    """
    if actual_price <= 0:
        return AccuracyScore(reward=0, deviation=1.0)

    deviation = abs(guessed_price - actual_price) / actual_price

    for max_deviation, reward in ACCURACY_TIERS:
        if deviation <= max_deviation:
            return AccuracyScore(reward=reward, deviation=deviation)

    if deviation <= PENALTY_DEVIATION:
        return AccuracyScore(reward=0, deviation=deviation)

    return AccuracyScore(reward=PENALTY_AMOUNT, deviation=deviation)


def calculate_karma(resolved_guesses: Sequence[ResolvedGuess]) -> KarmaScore:
    """
    Calculate karma from a user's resolved guesses.

    Args:
        resolved_guesses: Resolved guesses in chronological order

    Returns:
        KarmaScore with public karma floored at 0 and the raw internal total
    """
    internal = 0.0
    streak = 0

    for guess in resolved_guesses:
        score = score_guess_accuracy(guess.guessed_price, guess.actual_price)

        weight = NEW_ACCOUNT_WEIGHT if guess.guess_index < NEW_ACCOUNT_THRESHOLD else 1.0
        internal += score.reward * weight

        if score.deviation <= CONSISTENCY_DEVIATION:
            streak += 1
            if streak % CONSISTENCY_STREAK_LENGTH == 0:
                internal += CONSISTENCY_BONUS
        else:
            streak = 0

    rounded = round_half_up(internal)
    return KarmaScore(karma=max(0, rounded), internal_karma=rounded)


def to_resolved_guesses(pairs: Sequence[Tuple[float, float]]) -> List[ResolvedGuess]:
    """Index (guessed_price, actual_price) pairs that are already in chronological order."""
    return [
        ResolvedGuess(guessed_price=guessed, actual_price=actual, guess_index=i)
        for i, (guessed, actual) in enumerate(pairs)
    ]
