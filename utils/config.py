"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Data
    repository_path: Optional[str] = field(
        default_factory=lambda: os.getenv("GUESS_REPOSITORY_PATH") or None
    )

    # Guessing
    guess_cooldown_days: int = field(
        default_factory=lambda: int(os.getenv("GUESS_COOLDOWN_DAYS", "5"))
    )

    # Display
    currency: str = field(default_factory=lambda: os.getenv("CURRENCY", "EUR"))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def guess_cooldown(self) -> timedelta:
        """Cooldown between guess updates."""
        return timedelta(days=self.guess_cooldown_days)
