"""Allowed values for the categorical waitlist questions."""

from __future__ import annotations

IDENTITY_OTHER = "Other"

IDENTITY_OPTIONS: tuple[str, ...] = (
    "Real estate professional",
    "Legal professional",
    "Financial professional",
    "Sales or business development",
    "Founder or executive",
    "Investor",
    IDENTITY_OTHER,
)

EMOTIONAL_HOOK_OPTIONS: tuple[str, ...] = ("Rarely", "Sometimes", "Often", "Too often")

FEATURE_SIGNAL_OPTIONS: tuple[str, ...] = (
    "One-tap voice capture",
    "Smart follow-up reminders",
    "Context popping up on calendar and calls",
    "Search across people",
    "AI call prep before meetings",
)

COMMITMENT_OPTIONS: tuple[str, ...] = (
    "Yes, I want early access",
    "Yes, and I'll give feedback",
    "Just keep me updated",
)

IDENTITY_SET = frozenset(IDENTITY_OPTIONS)
EMOTIONAL_HOOK_SET = frozenset(EMOTIONAL_HOOK_OPTIONS)
FEATURE_SIGNAL_SET = frozenset(FEATURE_SIGNAL_OPTIONS)
COMMITMENT_SET = frozenset(COMMITMENT_OPTIONS)

MIN_FEATURE_SIGNALS = 1
MAX_FEATURE_SIGNALS = 2
