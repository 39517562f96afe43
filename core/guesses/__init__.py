"""
Guess service layer.

Stores properties, listings, guessers and price guesses, validates
guesses at the boundary, scores guesser karma, and runs the FMV
Engine per property.
"""

from core.guesses.errors import (
    GuessError,
    GuessValidationError,
    PropertyNotFoundError,
    GuessCooldownError,
)
from core.guesses.schema import (
    GuessProperty,
    Listing,
    ListingStatus,
    Guesser,
    PriceGuess,
)
from core.guesses.validation import (
    validate_guessed_price,
    validate_karma,
    is_meme_guess,
    to_weighted_guess,
    MEME_RATIO_LOW,
    MEME_RATIO_HIGH,
)
from core.guesses.karma import (
    AccuracyScore,
    KarmaRank,
    KarmaScore,
    ResolvedGuess,
    KARMA_RANKS,
    get_karma_rank,
    score_guess_accuracy,
    calculate_karma,
    to_resolved_guesses,
)
from core.guesses.repository import (
    GuessRepository,
    get_guess_repository,
)
from core.guesses.service import (
    FmvService,
    GuessSubmission,
    GuessListEntry,
    GuessPage,
    DEFAULT_GUESS_COOLDOWN,
)

__all__ = [
    # Errors
    "GuessError",
    "GuessValidationError",
    "PropertyNotFoundError",
    "GuessCooldownError",
    # Records
    "GuessProperty",
    "Listing",
    "ListingStatus",
    "Guesser",
    "PriceGuess",
    # Validation
    "validate_guessed_price",
    "validate_karma",
    "is_meme_guess",
    "to_weighted_guess",
    "MEME_RATIO_LOW",
    "MEME_RATIO_HIGH",
    # Karma
    "AccuracyScore",
    "KarmaRank",
    "KarmaScore",
    "ResolvedGuess",
    "KARMA_RANKS",
    "get_karma_rank",
    "score_guess_accuracy",
    "calculate_karma",
    "to_resolved_guesses",
    # Storage & service
    "GuessRepository",
    "get_guess_repository",
    "FmvService",
    "GuessSubmission",
    "GuessListEntry",
    "GuessPage",
    "DEFAULT_GUESS_COOLDOWN",
]
