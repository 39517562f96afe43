"""
Guess Repository - In-Memory Storage for Properties, Listings and Guesses

Provides the data the FMV service needs at call time: WOZ value,
active asking price and non-meme guesses with current guesser karma.
This is an in-memory implementation with optional JSON persistence.
Production should use a persistent database.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from core.fmv_engine import WeightedGuess
from core.guesses.schema import (
    GuessProperty,
    Guesser,
    Listing,
    ListingStatus,
    PriceGuess,
)
from core.guesses.validation import to_weighted_guess, validate_karma


logger = logging.getLogger(__name__)


# =============================================================================
# Repository
# =============================================================================


class GuessRepository:
    """
    Repository for guess data.

    Guesses are keyed by (property_id, user_id): one guess per user
    per property.
    """

    def __init__(self, persist_path: Optional[str] = None):
        """
        Initialise repository.

        Args:
            persist_path: Optional path to persist data to JSON file
        """
        self._lock = threading.Lock()
        self._properties: dict[str, GuessProperty] = {}
        self._listings: dict[str, Listing] = {}
        self._users: dict[str, Guesser] = {}
        self._guesses: dict[tuple[str, str], PriceGuess] = {}
        self._persist_path = Path(persist_path) if persist_path else None

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self) -> None:
        """Persist data to file. Caller holds the lock."""
        if not self._persist_path:
            return

        data = {
            "properties": [p.to_dict() for p in self._properties.values()],
            "listings": [lst.to_dict() for lst in self._listings.values()],
            "users": [u.to_dict() for u in self._users.values()],
            "guesses": [g.to_dict() for g in self._guesses.values()],
            "saved_at": datetime.utcnow().isoformat(),
        }

        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2))

    def _load_from_file(self) -> None:
        """Load data from file."""
        try:
            data = json.loads(self._persist_path.read_text())
            for item in data.get("properties", []):
                prop = GuessProperty.from_dict(item)
                self._properties[prop.property_id] = prop
            for item in data.get("listings", []):
                listing = Listing.from_dict(item)
                self._listings[listing.listing_id] = listing
            for item in data.get("users", []):
                user = Guesser.from_dict(item)
                self._users[user.user_id] = user
            for item in data.get("guesses", []):
                guess = PriceGuess.from_dict(item)
                self._guesses[(guess.property_id, guess.user_id)] = guess
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            # Start fresh rather than fail startup
            logger.warning("Could not load guess repository from %s: %s", self._persist_path, e)
            self._properties.clear()
            self._listings.clear()
            self._users.clear()
            self._guesses.clear()
            return

        logger.info(
            "Loaded %d properties and %d guesses from %s",
            len(self._properties),
            len(self._guesses),
            self._persist_path,
        )

    # =========================================================================
    # Properties & Listings
    # =========================================================================

    def add_property(self, prop: GuessProperty) -> GuessProperty:
        """Store (or replace) a property."""
        with self._lock:
            self._properties[prop.property_id] = prop
            self._save_to_file()
        return prop

    def get_property(self, property_id: str) -> Optional[GuessProperty]:
        """Get a property by ID, or None."""
        return self._properties.get(property_id)

    def add_listing(self, listing: Listing) -> Listing:
        """Store (or replace) a listing."""
        with self._lock:
            self._listings[listing.listing_id] = listing
            self._save_to_file()
        return listing

    def active_asking_price(self, property_id: str) -> Optional[int]:
        """
        Asking price of the most recent active listing.

        Returns:
            Asking price, or None if the property has no active listing
        """
        with self._lock:
            listings = list(self._listings.values())

        active = [
            lst for lst in listings
            if lst.property_id == property_id and lst.status == ListingStatus.ACTIVE
        ]
        if not active:
            return None
        latest = max(active, key=lambda lst: lst.created_at)
        return latest.asking_price

    # =========================================================================
    # Guessers
    # =========================================================================

    def add_user(self, user: Guesser) -> Guesser:
        """
        Store (or replace) a guesser.

        Raises:
            GuessValidationError: If karma or internal_karma is not an integer
        """
        validate_karma(user.karma)
        validate_karma(user.internal_karma)
        with self._lock:
            self._users[user.user_id] = user
            self._save_to_file()
        return user

    def get_user(self, user_id: str) -> Optional[Guesser]:
        """Get a guesser by ID, or None."""
        return self._users.get(user_id)

    # =========================================================================
    # Guesses
    # =========================================================================

    def get_guess(self, property_id: str, user_id: str) -> Optional[PriceGuess]:
        """Get a user's guess for a property, or None."""
        return self._guesses.get((property_id, user_id))

    def save_guess(self, guess: PriceGuess) -> PriceGuess:
        """Insert or replace a user's guess for a property."""
        with self._lock:
            self._guesses[(guess.property_id, guess.user_id)] = guess
            self._save_to_file()
        return guess

    def list_guesses(self, property_id: str) -> list[PriceGuess]:
        """All guesses for a property (meme guesses included), oldest first."""
        with self._lock:
            guesses = [g for g in self._guesses.values() if g.property_id == property_id]
        return sorted(guesses, key=lambda g: g.created_at)

    def weighted_guesses(self, property_id: str) -> list[WeightedGuess]:
        """
        Non-meme guesses joined with each guesser's current karma.

        Guesses whose user no longer exists are skipped.
        """
        result = []
        for guess in self.list_guesses(property_id):
            if guess.is_meme_guess:
                continue
            user = self._users.get(guess.user_id)
            if user is None:
                continue
            result.append(to_weighted_guess(guess.guessed_price, user.karma))
        return result

    def resolved_guesses(self, user_id: str) -> list[tuple[int, int]]:
        """
        A user's non-meme guesses on sold properties, oldest first.

        Returns:
            List of (guessed_price, sold_price) pairs
        """
        with self._lock:
            guesses = [
                g for g in self._guesses.values()
                if g.user_id == user_id and not g.is_meme_guess
            ]
            properties = dict(self._properties)

        pairs = []
        for guess in sorted(guesses, key=lambda g: g.created_at):
            prop = properties.get(guess.property_id)
            if prop is None or prop.sold_price is None:
                continue
            pairs.append((guess.guessed_price, prop.sold_price))
        return pairs


# =============================================================================
# Singleton Instance
# =============================================================================

_repository_instance: Optional[GuessRepository] = None


def get_guess_repository(persist_path: Optional[str] = None) -> GuessRepository:
    """
    Get the guess repository singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)

    Returns:
        GuessRepository instance
    """
    global _repository_instance
    if _repository_instance is None:
        _repository_instance = GuessRepository(persist_path)
    return _repository_instance

