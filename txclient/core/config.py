from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    This uses pydantic-settings so that we get type validation and defaults.
    Settings are loaded from environment variables with optional .env file override.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: selects console or JSON log rendering."""

    DEBUG: bool = False
    """Enable debug logging."""

    # Endpoints
    BROADCAST_URL: str = "http://localhost:8080/broadcast"
    """Endpoint receiving the transaction submission (POST)."""

    POLLING_URL: str = "http://localhost:8080/check"
    """Base URL for status checks; the transaction hash is appended as a path segment."""

    # Polling
    POLL_INTERVAL_SECONDS: Optional[float] = None
    """Seconds between status checks. Unset or 0 uses the 5 second default."""

    HTTP_TIMEOUT_SECONDS: float = 30.0
    """Timeout for a single request to either endpoint."""

    # Transport
    TRANSPORT: str = "http"
    """Transport used by the client: 'http' or 'mock' (in-memory ledger)."""

    MOCK_PENDING_POLLS: int = 2
    """Mock ledger: number of status checks answered with PENDING before settling."""

    MOCK_FINAL_STATUS: Literal["CONFIRMED", "FAILED", "DNE"] = "CONFIRMED"
    """Mock ledger: status reported once a transaction settles."""

    # Model config
    model_config = SettingsConfigDict(
        env_prefix="TXCLIENT_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
