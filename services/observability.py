"""Structured logging helpers for waitlist request observability."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

_LOGGER_NAME = "waitlist"


@dataclass(frozen=True)
class LogContext:
    """Context values merged into every structured log event."""

    request_id: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)


class StructuredLogger:
    """Emit JSON logs with a stable event shape per request."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(_LOGGER_NAME)
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)
        self._logger.setLevel(logging.INFO)

    def info(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit("info", event, context=context, fields=fields)

    def error(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit("error", event, context=context, fields=fields)

    def _emit(
        self,
        level: str,
        event: str,
        *,
        context: LogContext | None,
        fields: dict[str, Any],
    ) -> None:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "event": event,
        }
        if context is not None:
            if context.request_id:
                payload["request_id"] = context.request_id
            payload.update(context.extras)
        payload.update(fields)
        line = json.dumps(payload, sort_keys=True, default=str)
        if level == "error":
            self._logger.error(line)
        else:
            self._logger.info(line)


def request_id_from_headers(headers: Mapping[str, str]) -> str:
    """Reuse the platform request id when present (keys already lower-cased)."""
    for name in ("x-request-id", "x-vercel-id"):
        value = headers.get(name, "").strip()
        if value:
            return value
    return uuid.uuid4().hex


def email_domain(email: str) -> str:
    """Domain part only; full addresses stay out of the logs."""
    _, sep, domain = email.rpartition("@")
    if not sep or not domain:
        return "unknown"
    return domain


_default_logger: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _default_logger
    if _default_logger is None:
        _default_logger = StructuredLogger()
    return _default_logger
