"""
FMV Service - Calls the FMV Engine per Property

Fetches the WOZ value, active asking price and non-meme guesses with
current karma at call time, then runs the pure FMV Engine. Also
accepts new guesses, flagging memes and enforcing the update cooldown,
lists guesses page by page, and rescores guessers once a property sells.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from core.fmv_engine import FmvResult, estimate_fmv
from core.guesses.errors import GuessCooldownError, PropertyNotFoundError
from core.guesses.karma import (
    KarmaScore,
    calculate_karma,
    get_karma_rank,
    to_resolved_guesses,
)
from core.guesses.repository import GuessRepository, get_guess_repository
from core.guesses.schema import Guesser, PriceGuess
from core.guesses.validation import is_meme_guess, validate_guessed_price


logger = logging.getLogger(__name__)


# Minimum time between updates of the same guess
DEFAULT_GUESS_COOLDOWN = timedelta(days=5)


@dataclass
class GuessSubmission:
    """Outcome of submitting a guess."""
    guess: PriceGuess
    created: bool  # False when an existing guess was updated


@dataclass
class GuessListEntry:
    """A guess joined with its guesser."""
    guess: PriceGuess
    user: Guesser

    def to_dict(self) -> dict:
        data = self.guess.to_dict()
        data["user"] = {
            "user_id": self.user.user_id,
            "username": self.user.username,
            "karma": self.user.karma,
            "karmaRank": get_karma_rank(self.user.karma).to_dict(),
        }
        return data


@dataclass
class GuessPage:
    """One page of a property's guesses."""
    entries: list
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


class FmvService:
    """
    Service layer around the FMV Engine.

    Results are computed fresh on every call; caching is left to
    callers.
    """

    def __init__(
        self,
        repository: Optional[GuessRepository] = None,
        cooldown: timedelta = DEFAULT_GUESS_COOLDOWN,
    ):
        """
        Initialise service.

        Args:
            repository: Guess storage (default: repository singleton)
            cooldown: Minimum time between guess updates
        """
        self._repository = repository or get_guess_repository()
        self._cooldown = cooldown

    def calculate_for_property(self, property_id: str) -> FmvResult:
        """
        Calculate the FMV for a stored property.

        Args:
            property_id: Property ID

        Returns:
            FmvResult

        Raises:
            PropertyNotFoundError: If the property does not exist
        """
        prop = self._repository.get_property(property_id)
        if prop is None:
            raise PropertyNotFoundError("Property", property_id)

        guesses = self._repository.weighted_guesses(property_id)
        asking_price = self._repository.active_asking_price(property_id)

        result = estimate_fmv(guesses, prop.woz_value, asking_price)

        logger.debug(
            "FMV for %s: %s (%s, %d guesses)",
            property_id,
            result.fmv,
            result.confidence.value,
            result.guess_count,
        )
        return result

    def submit_guess(
        self,
        property_id: str,
        user_id: str,
        guessed_price: int,
        now: Optional[datetime] = None,
    ) -> GuessSubmission:
        """
        Submit or update a user's price guess.

        Args:
            property_id: Property ID
            user_id: Guesser ID
            guessed_price: Guessed price in whole units
            now: Submission time (default: utcnow)

        Returns:
            GuessSubmission with the stored guess and whether it was new

        Raises:
            GuessValidationError: If the price is invalid
            PropertyNotFoundError: If property or user does not exist
            GuessCooldownError: If the previous update is too recent
        """
        validate_guessed_price(guessed_price)
        now = now or datetime.utcnow()

        prop = self._repository.get_property(property_id)
        if prop is None:
            raise PropertyNotFoundError("Property", property_id)
        if self._repository.get_user(user_id) is None:
            raise PropertyNotFoundError("User", user_id)

        meme = is_meme_guess(guessed_price, prop.woz_value)
        existing = self._repository.get_guess(property_id, user_id)

        if existing is None:
            guess = PriceGuess.create(property_id, user_id, guessed_price, meme, now=now)
            logger.info("New guess on %s by %s (meme=%s)", property_id, user_id, meme)
            return GuessSubmission(self._repository.save_guess(guess), created=True)

        cooldown_end = existing.updated_at + self._cooldown
        if now < cooldown_end:
            raise GuessCooldownError(cooldown_end)

        existing.guessed_price = guessed_price
        existing.is_meme_guess = meme
        existing.updated_at = now
        logger.info("Updated guess on %s by %s (meme=%s)", property_id, user_id, meme)
        return GuessSubmission(self._repository.save_guess(existing), created=False)

    def list_guesses(self, property_id: str, page: int = 1, limit: int = 20) -> GuessPage:
        """
        One page of a property's guesses, oldest first, each with its guesser.

        Meme guesses are listed. Guesses whose user no longer exists are not.

        Args:
            property_id: Property ID
            page: 1-based page number
            limit: Page size

        Raises:
            PropertyNotFoundError: If the property does not exist
            ValueError: If page or limit is below 1
        """
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be at least 1")
        if self._repository.get_property(property_id) is None:
            raise PropertyNotFoundError("Property", property_id)

        entries = []
        for guess in self._repository.list_guesses(property_id):
            user = self._repository.get_user(guess.user_id)
            if user is not None:
                entries.append(GuessListEntry(guess=guess, user=user))

        offset = (page - 1) * limit
        return GuessPage(
            entries=entries[offset:offset + limit],
            page=page,
            limit=limit,
            total=len(entries),
        )

    # =========================================================================
    # Karma
    # =========================================================================

    def recalculate_karma(self, user_id: str) -> KarmaScore:
        """
        Rescore a user from their resolved guesses and store the result.

        Raises:
            PropertyNotFoundError: If the user does not exist
        """
        user = self._repository.get_user(user_id)
        if user is None:
            raise PropertyNotFoundError("User", user_id)

        resolved = to_resolved_guesses(self._repository.resolved_guesses(user_id))
        score = calculate_karma(resolved)

        user.karma = score.karma
        user.internal_karma = score.internal_karma
        self._repository.add_user(user)

        logger.info(
            "Karma for %s: %d (internal %d, %d resolved guesses)",
            user_id,
            score.karma,
            score.internal_karma,
            len(resolved),
        )
        return score

    def record_sale(self, property_id: str, sold_price: int) -> dict:
        """
        Record a property's sale price and rescore everyone who guessed on it.

        Args:
            property_id: Property ID
            sold_price: Actual sale price

        Returns:
            Dict of user_id -> KarmaScore for the rescored users

        Raises:
            GuessValidationError: If the price is invalid
            PropertyNotFoundError: If the property does not exist
        """
        validate_guessed_price(sold_price)
        prop = self._repository.get_property(property_id)
        if prop is None:
            raise PropertyNotFoundError("Property", property_id)

        prop.sold_price = sold_price
        self._repository.add_property(prop)
        logger.info("Recorded sale of %s at %s", property_id, sold_price)

        scores = {}
        for guess in self._repository.list_guesses(property_id):
            if guess.is_meme_guess or self._repository.get_user(guess.user_id) is None:
                continue
            scores[guess.user_id] = self.recalculate_karma(guess.user_id)
        return scores
