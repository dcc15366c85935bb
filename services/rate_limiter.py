"""Fixed-window request throttling backed by the relational store."""

from __future__ import annotations

import math
from collections.abc import Mapping

from sqlalchemy import text

from models import RateLimitDecision, RateLimitScope
from services.database import DependencyError, StoreClient

UNKNOWN_CLIENT_IP = "unknown"

# One statement per hit: insert, reset an expired window, or increment.
_HIT_SQL = text(
    """
    INSERT INTO waitlist_rate_limits (rate_key, window_start, hit_count)
    VALUES (:rate_key, :now_ts, 1)
    ON CONFLICT (rate_key) DO UPDATE SET
        window_start = CASE
            WHEN :now_ts - waitlist_rate_limits.window_start >= :window_seconds
                THEN :now_ts
            ELSE waitlist_rate_limits.window_start
        END,
        hit_count = CASE
            WHEN :now_ts - waitlist_rate_limits.window_start >= :window_seconds
                THEN 1
            ELSE waitlist_rate_limits.hit_count + 1
        END
    RETURNING window_start, hit_count
    """
)

_PURGE_SQL = text("DELETE FROM waitlist_rate_limits WHERE window_start < :cutoff")

_SELECT_SQL = text(
    """
    SELECT rate_key, window_start, hit_count
    FROM waitlist_rate_limits
    WHERE rate_key = :rate_key
    """
)


class RateLimitExceeded(RuntimeError):
    """Raised when a request trips one of the throttling keys."""

    def __init__(self, scope: RateLimitScope, retry_after_seconds: int) -> None:
        super().__init__(f"Rate limit exceeded for {scope.value} key")
        self.scope = scope
        self.retry_after_seconds = retry_after_seconds


def rate_limit_key(scope: RateLimitScope, value: str) -> str:
    return f"{scope.value}:{value}"


def resolve_client_ip(headers: Mapping[str, str]) -> str:
    """Pick the caller address from proxy headers (keys already lower-cased)."""
    forwarded = headers.get("x-forwarded-for", "")
    candidate = forwarded.split(",", 1)[0].strip()
    if not candidate:
        candidate = headers.get("x-real-ip", "").strip()
    return candidate or UNKNOWN_CLIENT_IP


def compute_retry_after(window_seconds: int, window_start: float, now_ts: float) -> int:
    elapsed = math.floor(now_ts - window_start)
    return max(0, window_seconds - elapsed)


class RateLimiter:
    """Dual-key limiter: a loose per-IP ceiling and a tight per-email ceiling."""

    def __init__(
        self,
        client: StoreClient,
        *,
        window_seconds: int,
        ip_max_requests: int,
        email_max_requests: int,
    ) -> None:
        self._client = client
        self.window_seconds = window_seconds
        self.ip_max_requests = ip_max_requests
        self.email_max_requests = email_max_requests

    def hit(
        self,
        key: str,
        *,
        max_requests: int,
        window_seconds: int,
        now_ts: float,
    ) -> RateLimitDecision:
        """Count one request against ``key`` and report whether it is over quota."""
        with self._client.begin() as conn:
            row = conn.execute(
                _HIT_SQL,
                {"rate_key": key, "now_ts": now_ts, "window_seconds": window_seconds},
            ).one_or_none()

        if row is None:
            raise DependencyError(f"Rate limit upsert returned no row for {key}")

        window_start = float(row.window_start)
        count = int(row.hit_count)
        return RateLimitDecision(
            key=key,
            count=count,
            limited=count > max_requests,
            retry_after_seconds=compute_retry_after(window_seconds, window_start, now_ts),
            window_start=window_start,
        )

    def purge_expired(self, *, now_ts: float, window_seconds: int | None = None) -> int:
        """Delete counters whose window started more than two windows ago."""
        window = window_seconds if window_seconds is not None else self.window_seconds
        with self._client.begin() as conn:
            result = conn.execute(_PURGE_SQL, {"cutoff": now_ts - 2 * window})
        return max(result.rowcount or 0, 0)

    def get_counter(self, key: str) -> tuple[float, int] | None:
        """Return ``(window_start, hit_count)`` for a key, if present."""
        with self._client.begin() as conn:
            row = conn.execute(_SELECT_SQL, {"rate_key": key}).one_or_none()
        if row is None:
            return None
        return float(row.window_start), int(row.hit_count)

    def enforce(self, *, client_ip: str, email: str, now_ts: float) -> list[RateLimitDecision]:
        """Check the IP key then the email key, raising on the first one tripped.

        An unknown client address skips the IP check; the email check always runs
        unless the IP check already rejected the request.
        """
        self.purge_expired(now_ts=now_ts)

        decisions: list[RateLimitDecision] = []
        if client_ip and client_ip != UNKNOWN_CLIENT_IP:
            ip_decision = self.hit(
                rate_limit_key(RateLimitScope.IP, client_ip),
                max_requests=self.ip_max_requests,
                window_seconds=self.window_seconds,
                now_ts=now_ts,
            )
            decisions.append(ip_decision)
            if ip_decision.limited:
                raise RateLimitExceeded(RateLimitScope.IP, ip_decision.retry_after_seconds)

        email_decision = self.hit(
            rate_limit_key(RateLimitScope.EMAIL, email),
            max_requests=self.email_max_requests,
            window_seconds=self.window_seconds,
            now_ts=now_ts,
        )
        decisions.append(email_decision)
        if email_decision.limited:
            raise RateLimitExceeded(RateLimitScope.EMAIL, email_decision.retry_after_seconds)
        return decisions
