"""Live checks against a running waitlist endpoint.

Usage:
    python scripts/smoke_waitlist.py [--basic | --rate-limit | --all]

Set WAITLIST_API_BASE_URL to target a deployment (default http://localhost:3000).
"""

from __future__ import annotations

import argparse
import os
import random
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import requests

DEFAULT_BASE_URL = "http://localhost:3000"
RATE_LIMIT_ATTEMPTS = 8

VALID_PAYLOAD_BASE: dict[str, Any] = {
    "identity": "Founder or executive",
    "emotionalHook": "Often",
    "goldInsight": "I forgot they were moving cities next month.",
    "featureSignal": ["Smart follow-up reminders", "Search across people"],
    "commitment": "Yes, I want early access",
    "company": "",
}


class SmokeCheckError(AssertionError):
    """Raised when the endpoint does not behave as expected."""


@dataclass(frozen=True)
class SubmitResult:
    status_code: int
    headers: dict[str, str]
    body: dict[str, Any]


Submitter = Callable[[str], SubmitResult]


def endpoint_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/api/waitlist"


def make_unique_email(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 99_999)}@example.com"


def http_submitter(endpoint: str, *, timeout: float = 10.0) -> Submitter:
    """Build a submitter that POSTs the valid payload for a given email."""

    def submit(email: str) -> SubmitResult:
        response = requests.post(
            endpoint,
            json={**VALID_PAYLOAD_BASE, "email": email},
            timeout=timeout,
        )
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if not isinstance(body, dict):
            body = {"message": str(body)}
        return SubmitResult(
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=body,
        )

    return submit


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise SmokeCheckError(message)


def run_basic_flow_check(submit: Submitter, email: str | None = None) -> None:
    """First submit must be created, the second updated."""
    address = email or make_unique_email("waitlist-basic")
    print(f"\n[Basic] Testing created/updated flow with {address}")

    first = submit(address)
    print(f"[Basic] First submit -> status {first.status_code}, code: {first.body.get('code', 'n/a')}")
    _check(first.status_code == 200, "Expected first submit status to be 200.")
    _check(first.body.get("code") == "created", "Expected first submit code to be 'created'.")

    second = submit(address)
    print(f"[Basic] Second submit -> status {second.status_code}, code: {second.body.get('code', 'n/a')}")
    _check(second.status_code == 200, "Expected second submit status to be 200.")
    _check(second.body.get("code") == "updated", "Expected second submit code to be 'updated'.")

    print("[Basic] PASS")


def run_rate_limit_check(
    submit: Submitter,
    email: str | None = None,
    attempts: int = RATE_LIMIT_ATTEMPTS,
) -> int:
    """Repeat one email until the limiter answers 429; return the attempt number."""
    address = email or make_unique_email("waitlist-rate")
    print(f"\n[RateLimit] Testing per-email limiter with {address}")

    for attempt in range(1, attempts + 1):
        result = submit(address)
        retry_after = result.headers.get("retry-after")
        print(
            f"[RateLimit] Attempt {attempt} -> status {result.status_code}, "
            f"code: {result.body.get('code', 'n/a')}, retry-after: {retry_after or 'n/a'}"
        )
        if result.status_code == 429:
            _check(
                result.body.get("code") == "rate_limited",
                "Expected 429 response code to be 'rate_limited'.",
            )
            _check(bool(retry_after), "Expected 429 response to include Retry-After header.")
            print("[RateLimit] PASS")
            return attempt

    raise SmokeCheckError("Expected to hit rate limit (429), but it never occurred.")


def main(argv: list[str] | None = None, submit: Submitter | None = None) -> int:
    parser = argparse.ArgumentParser(description="Smoke-check the waitlist API.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--basic", action="store_true", help="created/updated flow only")
    mode.add_argument("--rate-limit", action="store_true", help="per-email limiter only")
    mode.add_argument("--all", action="store_true", help="run every check (default)")
    args = parser.parse_args(argv)

    endpoint = endpoint_url(os.environ.get("WAITLIST_API_BASE_URL", DEFAULT_BASE_URL))
    print(f"Running waitlist API checks against: {endpoint}")
    submitter = submit or http_submitter(endpoint)

    try:
        if not args.rate_limit:
            run_basic_flow_check(submitter)
        if not args.basic:
            run_rate_limit_check(submitter)
    except (SmokeCheckError, requests.RequestException) as exc:
        print(f"\nFAIL: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
