"""Relational store client and idempotent schema setup."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class DependencyError(RuntimeError):
    """Raised when the backing store is unreachable or misconfigured."""


SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS waitlist_signups (
        email TEXT PRIMARY KEY,
        identity TEXT NOT NULL,
        identity_other TEXT,
        emotional_hook TEXT NOT NULL,
        gold_insight TEXT NOT NULL,
        feature_signal TEXT NOT NULL,
        commitment TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS waitlist_signups_created_at_idx
    ON waitlist_signups (created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS waitlist_rate_limits (
        rate_key TEXT PRIMARY KEY,
        window_start DOUBLE PRECISION NOT NULL,
        hit_count INTEGER NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS waitlist_rate_limits_window_start_idx
    ON waitlist_rate_limits (window_start)
    """,
)

SCHEMA_LOCK_ID = 7_302_114_001


class StoreClient:
    """Lazily connected SQLAlchemy engine shared by the store components."""

    def __init__(self, database_url: str | None, *, engine: Engine | None = None) -> None:
        self.database_url = database_url
        self._engine = engine
        self._engine_lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        if self._engine is not None:
            return self._engine
        if not self.database_url:
            raise DependencyError("Missing POSTGRES_URL environment variable.")
        with self._engine_lock:
            if self._engine is None:
                try:
                    self._engine = _build_engine(self.database_url)
                except (SQLAlchemyError, ImportError, ValueError) as exc:
                    raise DependencyError(
                        f"Could not create store engine: {exc.__class__.__name__}"
                    ) from exc
        return self._engine

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Yield a connection inside one committed-or-rolled-back transaction.

        Unique-constraint violations propagate as ``IntegrityError`` so callers
        can branch on them; every other store failure becomes ``DependencyError``.
        """
        try:
            with self.engine.begin() as conn:
                yield conn
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            raise DependencyError(f"Store operation failed: {exc.__class__.__name__}") from exc

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()


def _build_engine(database_url: str) -> Engine:
    engine = create_engine(database_url, **_engine_options(database_url))
    if not database_url.startswith("sqlite"):
        return engine

    # SQLite: take the write lock at BEGIN so concurrent writers queue on the
    # busy timeout instead of failing a SHARED -> RESERVED upgrade.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def _engine_options(database_url: str) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"timeout": 30}}
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 5,
    }


class SchemaManager:
    """Create the signup and rate-limit tables once per process."""

    def __init__(self, client: StoreClient) -> None:
        self._client = client
        self._lock = threading.Lock()
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure(self) -> bool:
        """Run the DDL if this process has not yet done so.

        Returns True when this call performed the initialization. A failure
        leaves the ready flag unset so the next request tries again.
        """
        if self._ready:
            return False
        with self._lock:
            if self._ready:
                return False
            try:
                self._run_ddl()
            except IntegrityError:
                # Lost a catalog race to another process; its tables now exist.
                try:
                    self._run_ddl()
                except IntegrityError as exc:
                    raise DependencyError("Schema initialization raced another process") from exc
            self._ready = True
        return True

    def _run_ddl(self) -> None:
        with self._client.begin() as conn:
            if conn.dialect.name == "postgresql":
                # Serializes DDL across processes; released at commit.
                conn.execute(
                    text("SELECT pg_advisory_xact_lock(:lock_id)"),
                    {"lock_id": SCHEMA_LOCK_ID},
                )
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))
