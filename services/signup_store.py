"""Signup persistence with an observable created/updated outcome."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from models import SignupOutcome, SignupRecord
from services.database import DependencyError, StoreClient

_INSERT_SQL = text(
    """
    INSERT INTO waitlist_signups (
        email,
        identity,
        identity_other,
        emotional_hook,
        gold_insight,
        feature_signal,
        commitment,
        created_at,
        updated_at
    )
    VALUES (
        :email,
        :identity,
        :identity_other,
        :emotional_hook,
        :gold_insight,
        :feature_signal,
        :commitment,
        :now,
        :now
    )
    """
)

_UPDATE_SQL = text(
    """
    UPDATE waitlist_signups
    SET identity = :identity,
        identity_other = :identity_other,
        emotional_hook = :emotional_hook,
        gold_insight = :gold_insight,
        feature_signal = :feature_signal,
        commitment = :commitment,
        updated_at = :now
    WHERE email = :email
    """
)

_SELECT_SQL = text(
    """
    SELECT
        email,
        identity,
        identity_other,
        emotional_hook,
        gold_insight,
        feature_signal,
        commitment,
        created_at,
        updated_at
    FROM waitlist_signups
    WHERE email = :email
    """
)


class SignupStore:
    """Insert-or-update signups keyed on the unique email column."""

    def __init__(self, client: StoreClient) -> None:
        self._client = client

    def upsert(self, record: SignupRecord, *, now_ts: float) -> SignupOutcome:
        """Create the signup, or overwrite its answers if the email exists.

        The insert runs in its own transaction so that a unique-key violation
        leaves nothing half-written. Of two concurrent first submissions, the
        constraint lets exactly one insert through and sends the other to the
        update branch.
        """
        params = _record_params(record, now_ts)
        try:
            with self._client.begin() as conn:
                conn.execute(_INSERT_SQL, params)
        except IntegrityError:
            with self._client.begin() as conn:
                result = conn.execute(_UPDATE_SQL, params)
            if result.rowcount == 0:
                raise DependencyError(
                    "Signup row disappeared between insert conflict and update"
                ) from None
            return SignupOutcome.UPDATED
        return SignupOutcome.CREATED

    def get(self, email: str) -> SignupRecord | None:
        """Return the stored signup for a normalized email."""
        with self._client.begin() as conn:
            row = conn.execute(_SELECT_SQL, {"email": email}).mappings().one_or_none()

        if row is None:
            return None

        return SignupRecord(
            email=row["email"],
            identity=row["identity"],
            identity_other=row["identity_other"],
            emotional_hook=row["emotional_hook"],
            gold_insight=row["gold_insight"],
            feature_signal=tuple(json.loads(row["feature_signal"])),
            commitment=row["commitment"],
            created_at=_parse_iso(row["created_at"]),
            updated_at=_parse_iso(row["updated_at"]),
        )


def _record_params(record: SignupRecord, now_ts: float) -> dict[str, Any]:
    return {
        "email": record.email,
        "identity": record.identity,
        "identity_other": record.identity_other,
        "emotional_hook": record.emotional_hook,
        "gold_insight": record.gold_insight,
        "feature_signal": json.dumps(list(record.feature_signal)),
        "commitment": record.commitment,
        "now": _iso_from_ts(now_ts),
    }


def _iso_from_ts(now_ts: float) -> str:
    return datetime.fromtimestamp(now_ts, UTC).isoformat()


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)
