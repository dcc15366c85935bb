"""Core typed models used across the waitlist submission flow."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class SignupOutcome(StrEnum):
    """Which branch of the signup upsert was taken."""

    CREATED = "created"
    UPDATED = "updated"


class RateLimitScope(StrEnum):
    """Throttling keyspaces checked per request."""

    IP = "ip"
    EMAIL = "email"


@dataclass(frozen=True)
class SignupCandidate:
    """Normalized but not yet validated request payload."""

    email: str
    identity: str
    identity_other: str
    emotional_hook: str
    gold_insight: str
    feature_signal: tuple[str, ...]
    commitment: str
    company: str

    @property
    def is_spam(self) -> bool:
        return bool(self.company)


@dataclass(frozen=True)
class SignupRecord:
    """Validated signup, one per normalized email."""

    email: str
    identity: str
    identity_other: str | None
    emotional_hook: str
    gold_insight: str
    feature_signal: tuple[str, ...]
    commitment: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of one counter hit against the rate-limit store."""

    key: str
    count: int
    limited: bool
    retry_after_seconds: int
    window_start: float
