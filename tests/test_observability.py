"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging

import pytest

from services.observability import (
    LogContext,
    StructuredLogger,
    email_domain,
    request_id_from_headers,
)


def test_structured_logger_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    logger = StructuredLogger()

    with caplog.at_level(logging.INFO, logger="waitlist"):
        logger.info(
            "waitlist.persisted",
            context=LogContext(request_id="req-1", extras={"route": "waitlist"}),
            outcome="created",
        )

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "waitlist.persisted"
    assert payload["request_id"] == "req-1"
    assert payload["route"] == "waitlist"
    assert payload["outcome"] == "created"
    assert payload["level"] == "info"


def test_error_events_use_error_level(caplog: pytest.LogCaptureFixture) -> None:
    logger = StructuredLogger()

    with caplog.at_level(logging.INFO, logger="waitlist"):
        logger.error("waitlist.failed", error_type="DependencyError")

    assert caplog.records[-1].levelno == logging.ERROR


def test_request_id_prefers_platform_header() -> None:
    assert request_id_from_headers({"x-request-id": "abc"}) == "abc"
    assert request_id_from_headers({"x-vercel-id": "iad1::xyz"}) == "iad1::xyz"
    generated = request_id_from_headers({})
    assert len(generated) == 32


def test_email_domain_hides_local_part() -> None:
    assert email_domain("person@example.com") == "example.com"
    assert email_domain("no-at-sign") == "unknown"


def test_email_domain_never_echoes_malformed_input() -> None:
    assert email_domain("secret-local-part") == "unknown"
    assert email_domain("trailing@") == "unknown"
    assert email_domain("") == "unknown"
