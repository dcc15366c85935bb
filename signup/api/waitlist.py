"""Waitlist submission endpoint with validation, throttling, and upsert."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from config import ConfigError, WaitlistConfig, get_config
from models import SignupOutcome
from services.database import DependencyError, SchemaManager, StoreClient
from services.normalizer import normalize_payload
from services.observability import (
    LogContext,
    email_domain,
    get_logger,
    request_id_from_headers,
)
from services.rate_limiter import RateLimiter, RateLimitExceeded, resolve_client_ip
from services.signup_store import SignupStore
from services.validator import SignupValidationError, validate_candidate

MSG_CREATED = "Thanks for joining the waitlist."
MSG_UPDATED = "Your waitlist answers have been updated."
MSG_RATE_LIMITED = "Too many attempts. Please wait a few minutes and try again."
MSG_FAILED = "Could not save your signup right now."
MSG_INVALID_BODY = "Invalid request body."
MSG_METHOD_NOT_ALLOWED = "Method not allowed."

_SUCCESS_MESSAGES = {
    SignupOutcome.CREATED: MSG_CREATED,
    SignupOutcome.UPDATED: MSG_UPDATED,
}


@dataclass(frozen=True)
class EndpointResponse:
    """HTTP-like response shape used by tests and serverless adapters."""

    status_code: int
    headers: dict[str, str]
    body: dict[str, Any]


@dataclass(frozen=True)
class WaitlistDependencies:
    """Store-backed collaborators for one process, built by the composition root."""

    config: WaitlistConfig
    store: StoreClient
    schema: SchemaManager
    rate_limiter: RateLimiter
    signups: SignupStore


def build_dependencies(config: WaitlistConfig, store: StoreClient | None = None) -> WaitlistDependencies:
    """Wire the store client and its components from configuration."""
    client = store or StoreClient(config.database_url)
    return WaitlistDependencies(
        config=config,
        store=client,
        schema=SchemaManager(client),
        rate_limiter=RateLimiter(
            client,
            window_seconds=config.rate_limit_window_seconds,
            ip_max_requests=config.ip_max_requests,
            email_max_requests=config.email_max_requests,
        ),
        signups=SignupStore(client),
    )


@lru_cache(maxsize=1)
def get_default_dependencies() -> WaitlistDependencies:
    """Process-wide dependencies for the serverless adapter."""
    return build_dependencies(get_config())


def process_request(
    *,
    method: str,
    headers: dict[str, str] | None,
    raw_body: str,
    dependencies: WaitlistDependencies | None = None,
    now_ts: float | None = None,
) -> EndpointResponse:
    """Process a waitlist submission for serverless and unit test use."""
    request_headers = _normalize_headers(headers)
    logger = get_logger()
    context = LogContext(request_id=request_id_from_headers(request_headers))

    if method.upper() != "POST":
        return _json_response(
            405,
            {"ok": False, "message": MSG_METHOD_NOT_ALLOWED},
            extra_headers={"Allow": "POST"},
        )

    payload = _parse_payload(raw_body)
    if payload is None:
        return _json_response(400, {"ok": False, "message": MSG_INVALID_BODY})

    candidate = normalize_payload(payload)
    if candidate.is_spam:
        # Silent bot sink: look successful, touch nothing.
        logger.info("waitlist.spam_discarded", context=context)
        return _json_response(200, {"ok": True})

    try:
        record = validate_candidate(candidate)
    except SignupValidationError as exc:
        logger.info("waitlist.rejected", context=context, reason=str(exc))
        return _json_response(400, {"ok": False, "message": str(exc)})

    now_value = now_ts if now_ts is not None else time.time()
    client_ip = resolve_client_ip(request_headers)
    domain = email_domain(record.email)

    try:
        deps = dependencies or get_default_dependencies()
        if deps.schema.ensure():
            logger.info("waitlist.schema_ready", context=context)
        deps.rate_limiter.enforce(client_ip=client_ip, email=record.email, now_ts=now_value)
        outcome = deps.signups.upsert(record, now_ts=now_value)
    except RateLimitExceeded as exc:
        logger.info(
            "waitlist.rate_limited",
            context=context,
            scope=exc.scope.value,
            retry_after_seconds=exc.retry_after_seconds,
            email_domain=domain,
        )
        return _json_response(
            429,
            {"ok": False, "code": "rate_limited", "message": MSG_RATE_LIMITED},
            extra_headers={"Retry-After": str(exc.retry_after_seconds)},
        )
    except (DependencyError, ConfigError) as exc:
        logger.error(
            "waitlist.failed",
            context=context,
            error_type=exc.__class__.__name__,
            error=str(exc),
            email_domain=domain,
        )
        return _json_response(500, {"ok": False, "message": MSG_FAILED})

    logger.info("waitlist.persisted", context=context, outcome=outcome.value, email_domain=domain)
    return _json_response(
        200,
        {"ok": True, "code": outcome.value, "message": _SUCCESS_MESSAGES[outcome]},
    )


def handler(request: Any) -> Any:
    """Vercel-style handler adapter."""
    method = str(getattr(request, "method", "GET"))
    headers = dict(getattr(request, "headers", {}) or {})

    body_value = getattr(request, "body", b"")
    if isinstance(body_value, (bytes, bytearray)):
        raw_body = body_value.decode("utf-8", errors="replace")
    else:
        raw_body = str(body_value or "")

    try:
        response = process_request(method=method, headers=headers, raw_body=raw_body)
    except Exception as exc:  # noqa: BLE001
        get_logger().error(
            "waitlist.unhandled",
            error_type=exc.__class__.__name__,
            error=str(exc),
        )
        response = _json_response(500, {"ok": False, "message": MSG_FAILED})

    # Vercel python runtime accepts tuple (body, status, headers).
    return json.dumps(response.body), response.status_code, response.headers


def _parse_payload(raw_body: str) -> dict[str, Any] | None:
    if not raw_body.strip():
        return None
    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def _normalize_headers(headers: dict[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(k).lower(): str(v) for k, v in headers.items()}


def _json_response(
    status_code: int,
    body: dict[str, Any],
    *,
    extra_headers: dict[str, str] | None = None,
) -> EndpointResponse:
    headers = {
        "Content-Type": "application/json",
        "Cache-Control": "no-store",
        **(extra_headers or {}),
    }
    return EndpointResponse(status_code=status_code, headers=headers, body=body)
