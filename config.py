"""Centralized configuration loading for the waitlist API."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


class ConfigError(ValueError):
    """Raised when configuration is present but invalid."""


DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 600
DEFAULT_IP_MAX_REQUESTS = 20
DEFAULT_EMAIL_MAX_REQUESTS = 5


@dataclass(frozen=True)
class WaitlistConfig:
    """Typed application configuration loaded from environment variables."""

    database_url: str | None
    rate_limit_window_seconds: int = DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    ip_max_requests: int = DEFAULT_IP_MAX_REQUESTS
    email_max_requests: int = DEFAULT_EMAIL_MAX_REQUESTS


def _parse_int(name: str, raw: str, minimum: int | None = None, maximum: int | None = None) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer value for {name}: {raw!r}") from exc

    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigError(f"{name} must be <= {maximum}, got {value}")
    return value


def _optional_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return _parse_int(name, raw.strip(), minimum=minimum)


def normalize_database_url(raw: str | None) -> str | None:
    """Return a SQLAlchemy-compatible URL, or None when unset."""
    if raw is None or not raw.strip():
        return None
    url = raw.strip()
    # Hosted Postgres providers hand out the libpq scheme.
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]
    return url


@lru_cache(maxsize=1)
def get_config(load_dotenv_file: bool = True) -> WaitlistConfig:
    """Load and cache app configuration."""
    if load_dotenv_file:
        load_dotenv()

    database_url = normalize_database_url(
        os.environ.get("POSTGRES_URL") or os.environ.get("DATABASE_URL")
    )

    return WaitlistConfig(
        database_url=database_url,
        rate_limit_window_seconds=_optional_int(
            "WAITLIST_RATE_LIMIT_WINDOW_SECONDS", DEFAULT_RATE_LIMIT_WINDOW_SECONDS
        ),
        ip_max_requests=_optional_int("WAITLIST_IP_MAX_REQUESTS", DEFAULT_IP_MAX_REQUESTS),
        email_max_requests=_optional_int(
            "WAITLIST_EMAIL_MAX_REQUESTS", DEFAULT_EMAIL_MAX_REQUESTS
        ),
    )


def reset_config_cache() -> None:
    """Clear memoized configuration for tests and process reloads."""
    get_config.cache_clear()
