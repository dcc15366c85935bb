"""Coerce raw waitlist request payloads into a canonical candidate."""

from __future__ import annotations

from typing import Any

from models import SignupCandidate
from services.options import FEATURE_SIGNAL_OPTIONS, FEATURE_SIGNAL_SET


def normalize_payload(payload: Any) -> SignupCandidate:
    """Normalize an untyped payload. Never raises."""
    data: dict[str, Any] = payload if isinstance(payload, dict) else {}

    return SignupCandidate(
        email=_text(data.get("email")).lower(),
        identity=_text(data.get("identity")),
        identity_other=_text(data.get("identityOther")),
        emotional_hook=_text(data.get("emotionalHook")),
        gold_insight=_text(data.get("goldInsight")),
        feature_signal=_feature_signals(data.get("featureSignal")),
        commitment=_text(data.get("commitment")),
        company=_text(data.get("company")),
    )


def _text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def _feature_signals(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    selected = {
        item.strip()
        for item in value
        if isinstance(item, str) and item.strip() in FEATURE_SIGNAL_SET
    }
    # Registry order keeps the stored value stable regardless of click order.
    return tuple(option for option in FEATURE_SIGNAL_OPTIONS if option in selected)
