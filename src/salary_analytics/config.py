"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the MongoDB connection and analytics-cache tuning from the environment
(a `.env` file at the project root is loaded first).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Container for service configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Database holding the `salary_entries` collection.
        mongo_tls: Whether to connect with TLS using the certifi CA bundle.
        cache_ttl_seconds: Lifetime of a cached analytics snapshot.
        cache_capacity: Maximum number of cached snapshots per cache.
        cache_sweep_seconds: Interval of the background expiry sweep.
        default_currency: Currency used when a query does not name one.
    """
    mongo_uri: str
    mongo_db: str
    mongo_tls: bool = False
    cache_ttl_seconds: float = 600.0
    cache_capacity: int = 100
    cache_sweep_seconds: float = 60.0
    default_currency: str = "TRY"


def _positive_number(name: str, default: str, cast: type) -> float | int:
    raw = os.getenv(name, default).strip()
    try:
        value = cast(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {raw!r}")
    return value


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if a numeric setting is not a positive number.
    """
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db = os.getenv("MONGO_DB", "salarydb")
    mongo_tls = os.getenv("MONGO_TLS", "false").strip().lower() in _TRUTHY
    default_currency = os.getenv("DEFAULT_CURRENCY", "TRY").strip().upper() or "TRY"

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        mongo_tls=mongo_tls,
        cache_ttl_seconds=float(_positive_number("ANALYTICS_CACHE_TTL_SECONDS", "600", float)),
        cache_capacity=int(_positive_number("ANALYTICS_CACHE_CAPACITY", "100", int)),
        cache_sweep_seconds=float(_positive_number("ANALYTICS_CACHE_SWEEP_SECONDS", "60", float)),
        default_currency=default_currency,
    )
