"""
Shared test fixtures for MediCheck SDK tests.

Provides configuration, credential stores and a fake backend served
through httpx.MockTransport.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from datetime import date, timedelta
from typing import Any

import pytest
import pytest_asyncio
import structlog

from medicheck_sdk import telemetry
from medicheck_sdk.client import MediCheckClient
from medicheck_sdk.config import MediCheckConfig
from medicheck_sdk.token_store import TokenStore, reset_token_store

from tests.fake_backend import FakeBackend, make_config


@pytest.fixture(autouse=True)
def _isolate_globals() -> Iterator[None]:
    """Reset process-wide SDK state between tests."""
    reset_token_store()
    yield
    reset_token_store()
    telemetry._tracer = None
    telemetry._logger = None
    structlog.reset_defaults()


@pytest.fixture
def config() -> MediCheckConfig:
    """Provide a configuration pointing at the fake backend."""
    return make_config()


@pytest.fixture
def backend() -> FakeBackend:
    """Provide a fresh fake backend."""
    return FakeBackend()


@pytest.fixture
def token_store() -> TokenStore:
    """Provide an empty in-memory token store."""
    return TokenStore()


@pytest_asyncio.fixture
async def client(
    config: MediCheckConfig,
    backend: FakeBackend,
    token_store: TokenStore,
) -> AsyncIterator[MediCheckClient]:
    """Provide a client wired to the fake backend, not logged in."""
    async with MediCheckClient(
        config,
        token_store=token_store,
        transport=backend.transport,
    ) as c:
        yield c


@pytest_asyncio.fixture
async def logged_in_client(
    config: MediCheckConfig,
    backend: FakeBackend,
) -> AsyncIterator[MediCheckClient]:
    """Provide a client holding a session the backend has issued."""
    async with MediCheckClient(
        config,
        token_store=backend.seeded_store(),
        transport=backend.transport,
    ) as c:
        yield c


@pytest.fixture
def batch_fields() -> dict[str, Any]:
    """Provide a valid batch registration in the backend's field names."""
    today = date.today()
    return {
        "batchNo": "PCM-2024-001",
        "name": "Paracetamol",
        "manufactureDate": (today - timedelta(days=30)).isoformat(),
        "expiry": (today + timedelta(days=700)).isoformat(),
        "formulation": "Tablet",
        "manufacturer": "Acme Pharma",
        "quantity": 500,
    }
