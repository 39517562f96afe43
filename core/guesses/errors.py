"""
Errors raised by the guess service layer.

The FMV Engine itself never raises; everything that can go wrong with
a guess is caught here, before a WeightedGuess is built.
"""

from __future__ import annotations

from datetime import datetime


class GuessError(Exception):
    """Base class for guess service errors."""


class GuessValidationError(GuessError, ValueError):
    """A guess or guesser value failed boundary validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class PropertyNotFoundError(GuessError, LookupError):
    """No property (or guesser) with the requested id."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} with ID {identifier} not found")


class GuessCooldownError(GuessError):
    """A guess update was attempted inside the cooldown window."""

    def __init__(self, cooldown_ends_at: datetime):
        self.cooldown_ends_at = cooldown_ends_at
        super().__init__(
            f"Guess can be updated after {cooldown_ends_at.isoformat()}"
        )
