"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from config import WaitlistConfig
from services.database import SchemaManager, StoreClient
from signup.api.waitlist import WaitlistDependencies, build_dependencies


@pytest.fixture
def waitlist_config(tmp_path: Path) -> WaitlistConfig:
    return WaitlistConfig(
        database_url=f"sqlite:///{tmp_path / 'waitlist.db'}",
        rate_limit_window_seconds=600,
        ip_max_requests=20,
        email_max_requests=5,
    )


@pytest.fixture
def store_client(waitlist_config: WaitlistConfig) -> Iterator[StoreClient]:
    client = StoreClient(waitlist_config.database_url)
    yield client
    client.dispose()


@pytest.fixture
def ready_store(store_client: StoreClient) -> StoreClient:
    SchemaManager(store_client).ensure()
    return store_client


@pytest.fixture
def dependencies(
    waitlist_config: WaitlistConfig, store_client: StoreClient
) -> WaitlistDependencies:
    return build_dependencies(waitlist_config, store=store_client)


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    return {
        "email": "Person@Example.com",
        "identity": "Founder or executive",
        "identityOther": "",
        "emotionalHook": "Often",
        "goldInsight": "I forgot they were moving cities next month.",
        "featureSignal": ["Smart follow-up reminders", "Search across people"],
        "commitment": "Yes, I want early access",
        "company": "",
    }
