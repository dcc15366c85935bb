"""Tests for waitlist field rules."""

from __future__ import annotations

from typing import Any

import pytest

from services.normalizer import normalize_payload
from services.validator import (
    MSG_COMMITMENT_REQUIRED,
    MSG_EMOTIONAL_HOOK_REQUIRED,
    MSG_FEATURE_SIGNAL_COUNT,
    MSG_GOLD_INSIGHT_REQUIRED,
    MSG_GOLD_INSIGHT_TOO_LONG,
    MSG_IDENTITY_OTHER_REQUIRED,
    MSG_IDENTITY_OTHER_TOO_LONG,
    MSG_IDENTITY_REQUIRED,
    MSG_INVALID_EMAIL,
    SignupValidationError,
    validate_candidate,
)


def _validate(payload: dict[str, Any]):
    return validate_candidate(normalize_payload(payload))


def test_valid_payload_produces_record(valid_payload: dict[str, Any]) -> None:
    record = _validate(valid_payload)

    assert record.email == "person@example.com"
    assert record.identity == "Founder or executive"
    assert record.identity_other is None
    assert record.feature_signal == ("Smart follow-up reminders", "Search across people")


@pytest.mark.parametrize(
    "email",
    ["", "plainaddress", "no-at.example.com", "a@b", "a b@example.com", "a@exa mple.com", "@x.io"],
)
def test_invalid_email_shapes_rejected(valid_payload: dict[str, Any], email: str) -> None:
    valid_payload["email"] = email

    with pytest.raises(SignupValidationError, match=MSG_INVALID_EMAIL):
        _validate(valid_payload)


def test_rules_run_in_order(valid_payload: dict[str, Any]) -> None:
    valid_payload["email"] = "bad"
    valid_payload["identity"] = "Astronaut"
    valid_payload["commitment"] = ""

    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_INVALID_EMAIL


def test_unknown_identity_rejected(valid_payload: dict[str, Any]) -> None:
    valid_payload["identity"] = "Astronaut"

    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_IDENTITY_REQUIRED


def test_other_identity_requires_description(valid_payload: dict[str, Any]) -> None:
    valid_payload["identity"] = "Other"
    valid_payload["identityOther"] = "   "

    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_IDENTITY_OTHER_REQUIRED


def test_other_identity_description_length_limit(valid_payload: dict[str, Any]) -> None:
    valid_payload["identity"] = "Other"
    valid_payload["identityOther"] = "x" * 121

    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_IDENTITY_OTHER_TOO_LONG


def test_other_identity_description_kept_verbatim(valid_payload: dict[str, Any]) -> None:
    valid_payload["identity"] = "Other"
    valid_payload["identityOther"] = "Wedding Photographer & Florist" + "!" * 90

    record = _validate(valid_payload)

    assert record.identity == "Other"
    assert record.identity_other == "Wedding Photographer & Florist" + "!" * 90


def test_identity_other_dropped_for_regular_identity(valid_payload: dict[str, Any]) -> None:
    valid_payload["identityOther"] = "y" * 500

    record = _validate(valid_payload)

    assert record.identity_other is None


def test_unknown_emotional_hook_rejected(valid_payload: dict[str, Any]) -> None:
    valid_payload["emotionalHook"] = "Never"

    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_EMOTIONAL_HOOK_REQUIRED


def test_gold_insight_required_and_bounded(valid_payload: dict[str, Any]) -> None:
    valid_payload["goldInsight"] = "  "
    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_GOLD_INSIGHT_REQUIRED

    valid_payload["goldInsight"] = "z" * 501
    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_GOLD_INSIGHT_TOO_LONG

    valid_payload["goldInsight"] = "z" * 500
    assert _validate(valid_payload).gold_insight == "z" * 500


@pytest.mark.parametrize(
    "signals",
    [
        [],
        ["Not a feature"],
        ["One-tap voice capture", "Search across people", "AI call prep before meetings"],
    ],
)
def test_feature_signal_count_rejected(valid_payload: dict[str, Any], signals: list[str]) -> None:
    valid_payload["featureSignal"] = signals

    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_FEATURE_SIGNAL_COUNT


@pytest.mark.parametrize(
    "signals",
    [
        ["One-tap voice capture"],
        ["AI call prep before meetings", "One-tap voice capture"],
        ["Search across people", "Bogus", "Also bogus"],
    ],
)
def test_feature_signal_count_accepted(valid_payload: dict[str, Any], signals: list[str]) -> None:
    valid_payload["featureSignal"] = signals

    record = _validate(valid_payload)

    assert 1 <= len(record.feature_signal) <= 2


def test_unknown_commitment_rejected(valid_payload: dict[str, Any]) -> None:
    valid_payload["commitment"] = "Maybe"

    with pytest.raises(SignupValidationError) as excinfo:
        _validate(valid_payload)
    assert str(excinfo.value) == MSG_COMMITMENT_REQUIRED
