# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

These run on the real asyncio loop (LoopScheduler) with millisecond
delays instead of the virtual clock used by unit tests.
"""

from __future__ import annotations

import logging

import pytest
import pytest_asyncio

from livequery.api.facade import DataAccessLayer
from livequery.config.settings import Settings
from livequery.store.memory_store import InMemoryDocumentStore


@pytest.fixture
def fast_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        reconnect_base_delay_s=0.01,
        one_shot_retry_delay_s=0.01,
        cooldown_backend="json",
        cooldown_path=tmp_path / "cooldown.json",
    )


@pytest.fixture
def live_store() -> InMemoryDocumentStore:
    s = InMemoryDocumentStore()
    s.set_document("accounts", "acc_1", {"userId": "u1", "balance": 10})
    s.set_document("accounts", "acc_2", {"userId": "u2", "balance": 20})
    return s


@pytest.fixture
def live_notifications() -> list:
    return []


@pytest_asyncio.fixture
async def live_dal(live_store, fast_settings, live_notifications):
    dal = DataAccessLayer(live_store, fast_settings, notifier=live_notifications.append)
    yield dal
    dal.close()


@pytest.fixture
def reset_livequery_logging():
    yield
    root = logging.getLogger("livequery")
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
