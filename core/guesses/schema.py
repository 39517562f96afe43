"""
Guess Schema - Stored Records Behind an FMV Estimate

Properties carry the official WOZ valuation, listings carry the asking
price, guessers carry karma, and price guesses link a guesser to a
property. The FMV service joins these into WeightedGuess values.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from core.guesses.validation import validate_karma


# =============================================================================
# Enums
# =============================================================================


class ListingStatus(Enum):
    """Lifecycle of a property listing."""

    ACTIVE = "active"
    SOLD = "sold"
    WITHDRAWN = "withdrawn"


# =============================================================================
# Records
# =============================================================================


@dataclass
class GuessProperty:
    """A property open for price guesses."""

    property_id: str
    address: str
    woz_value: Optional[int] = None  # Official WOZ valuation in EUR
    sold_price: Optional[int] = None  # Actual sale price once sold

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "property_id": self.property_id,
            "address": self.address,
            "woz_value": self.woz_value,
            "sold_price": self.sold_price,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GuessProperty":
        """Create property from dictionary."""
        return cls(
            property_id=data["property_id"],
            address=data.get("address", ""),
            woz_value=data.get("woz_value"),
            sold_price=data.get("sold_price"),
        )


@dataclass
class Listing:
    """A sale listing for a property. Only active listings carry a live asking price."""

    listing_id: str
    property_id: str
    asking_price: Optional[int]
    status: ListingStatus = ListingStatus.ACTIVE
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "listing_id": self.listing_id,
            "property_id": self.property_id,
            "asking_price": self.asking_price,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Listing":
        """Create listing from dictionary."""
        return cls(
            listing_id=data["listing_id"],
            property_id=data["property_id"],
            asking_price=data.get("asking_price"),
            status=ListingStatus(data.get("status", "active")),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class Guesser:
    """
    A user who submits price guesses.

    karma is the public score used as the FMV weight. Recalculated
    karma is floored at 0; internal_karma keeps the unfloored total.
    """

    user_id: str
    username: str
    karma: int = 0
    internal_karma: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "karma": self.karma,
            "internal_karma": self.internal_karma,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Guesser":
        """
        Create guesser from dictionary.

        Raises:
            GuessValidationError: If a stored karma value is not an integer
        """
        return cls(
            user_id=data["user_id"],
            username=data.get("username", ""),
            karma=validate_karma(data.get("karma", 0)),
            internal_karma=validate_karma(data.get("internal_karma", 0)),
        )


@dataclass
class PriceGuess:
    """
    One guesser's price opinion for one property.

    At most one guess per (property, user); updates replace the price
    and bump updated_at.
    """

    guess_id: str
    property_id: str
    user_id: str
    guessed_price: int
    is_meme_guess: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def create(
        cls,
        property_id: str,
        user_id: str,
        guessed_price: int,
        is_meme_guess: bool,
        now: Optional[datetime] = None,
    ) -> "PriceGuess":
        """Create a new guess with a fresh id."""
        now = now or datetime.utcnow()
        return cls(
            guess_id=str(uuid.uuid4()),
            property_id=property_id,
            user_id=user_id,
            guessed_price=guessed_price,
            is_meme_guess=is_meme_guess,
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "guess_id": self.guess_id,
            "property_id": self.property_id,
            "user_id": self.user_id,
            "guessed_price": self.guessed_price,
            "is_meme_guess": self.is_meme_guess,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PriceGuess":
        """Create guess from dictionary."""
        return cls(
            guess_id=data["guess_id"],
            property_id=data["property_id"],
            user_id=data["user_id"],
            guessed_price=data["guessed_price"],
            is_meme_guess=data.get("is_meme_guess", False),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
