"""Field rules for waitlist submissions.

Rules run in a fixed order and stop at the first failure so the message
returned to the form is deterministic for a given payload.
"""

from __future__ import annotations

import re

from models import SignupCandidate, SignupRecord
from services.options import (
    COMMITMENT_SET,
    EMOTIONAL_HOOK_SET,
    IDENTITY_OTHER,
    IDENTITY_SET,
    MAX_FEATURE_SIGNALS,
    MIN_FEATURE_SIGNALS,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_IDENTITY_OTHER_LENGTH = 120
MAX_GOLD_INSIGHT_LENGTH = 500

MSG_INVALID_EMAIL = "Please provide a valid email address."
MSG_IDENTITY_REQUIRED = "Please choose the option that best describes you."
MSG_IDENTITY_OTHER_REQUIRED = "Please tell us how you'd describe yourself."
MSG_IDENTITY_OTHER_TOO_LONG = (
    f"Please keep your description under {MAX_IDENTITY_OTHER_LENGTH} characters."
)
MSG_EMOTIONAL_HOOK_REQUIRED = "Please choose how often this happens to you."
MSG_GOLD_INSIGHT_REQUIRED = "Please share one detail you wish you had remembered."
MSG_GOLD_INSIGHT_TOO_LONG = f"Please keep your story under {MAX_GOLD_INSIGHT_LENGTH} characters."
MSG_FEATURE_SIGNAL_COUNT = "Please pick one or two features."
MSG_COMMITMENT_REQUIRED = "Please choose how you'd like to be involved."


class SignupValidationError(ValueError):
    """Raised when a submission fails a field rule; the message is caller-facing."""


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_PATTERN.match(email))


def validate_candidate(candidate: SignupCandidate) -> SignupRecord:
    """Apply every field rule in order and return the record to persist."""
    if not is_valid_email(candidate.email):
        raise SignupValidationError(MSG_INVALID_EMAIL)

    if candidate.identity not in IDENTITY_SET:
        raise SignupValidationError(MSG_IDENTITY_REQUIRED)

    identity_other: str | None = None
    if candidate.identity == IDENTITY_OTHER:
        if not candidate.identity_other:
            raise SignupValidationError(MSG_IDENTITY_OTHER_REQUIRED)
        if len(candidate.identity_other) > MAX_IDENTITY_OTHER_LENGTH:
            raise SignupValidationError(MSG_IDENTITY_OTHER_TOO_LONG)
        identity_other = candidate.identity_other

    if candidate.emotional_hook not in EMOTIONAL_HOOK_SET:
        raise SignupValidationError(MSG_EMOTIONAL_HOOK_REQUIRED)

    if not candidate.gold_insight:
        raise SignupValidationError(MSG_GOLD_INSIGHT_REQUIRED)
    if len(candidate.gold_insight) > MAX_GOLD_INSIGHT_LENGTH:
        raise SignupValidationError(MSG_GOLD_INSIGHT_TOO_LONG)

    if not MIN_FEATURE_SIGNALS <= len(candidate.feature_signal) <= MAX_FEATURE_SIGNALS:
        raise SignupValidationError(MSG_FEATURE_SIGNAL_COUNT)

    if candidate.commitment not in COMMITMENT_SET:
        raise SignupValidationError(MSG_COMMITMENT_REQUIRED)

    return SignupRecord(
        email=candidate.email,
        identity=candidate.identity,
        identity_other=identity_other,
        emotional_hook=candidate.emotional_hook,
        gold_insight=candidate.gold_insight,
        feature_signal=candidate.feature_signal,
        commitment=candidate.commitment,
    )
