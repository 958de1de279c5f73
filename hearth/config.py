"""
Hearth — Centralized configuration.

Loads all settings from .env and validates them.
Every other module reads configuration through the `settings` singleton.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from hearth/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram (only needed when the bot is started)
    TELEGRAM_BOT_TOKEN: str = ""

    # Document store
    STORE_BACKEND: str = "sqlite"
    DATABASE_PATH: str = "data/hearth.db"
    STORE_TIMEOUT_SECONDS: float = 5.0

    # Join codes
    JOIN_CODE_LENGTH: int = 6
    JOIN_CODE_MAX_ATTEMPTS: int = 10

    # Security — empty list means every Telegram user may talk to the bot
    ALLOWED_USER_IDS: list[int] = []

    # Display only; stored timestamps are always UTC
    TIMEZONE: str = "UTC"
    DEFAULT_DUE_HOURS: int = 24

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator(
        "JOIN_CODE_LENGTH", "JOIN_CODE_MAX_ATTEMPTS", "DEFAULT_DUE_HOURS", mode="before"
    )
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        value = int(v)
        if value < 1:
            raise ValueError(f"must be a positive integer, got {value}")
        return value

    @field_validator("STORE_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def parse_timeout(cls, v: str | float) -> float:
        return float(v)


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        STORE_BACKEND=os.getenv("STORE_BACKEND", "sqlite"),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/hearth.db"),
        STORE_TIMEOUT_SECONDS=os.getenv("STORE_TIMEOUT_SECONDS", "5.0"),
        JOIN_CODE_LENGTH=os.getenv("JOIN_CODE_LENGTH", "6"),
        JOIN_CODE_MAX_ATTEMPTS=os.getenv("JOIN_CODE_MAX_ATTEMPTS", "10"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        DEFAULT_DUE_HOURS=os.getenv("DEFAULT_DUE_HOURS", "24"),
    )


# Singleton — imported by all other modules as:
#   from hearth.config import settings
settings = _load_settings()
