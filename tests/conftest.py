# tests/conftest.py — v2
"""Shared test fixtures for all unit tests.

Provides an in-memory document store, a virtual scheduler and a fully
wired DataAccessLayer. No network, no real timers.
"""

from __future__ import annotations

import pytest

from livequery.api.facade import DataAccessLayer
from livequery.cache.memory_cooldown_store import MemoryCooldownStore
from livequery.cache.result_cache import ResultCache
from livequery.config.settings import Settings
from livequery.core.scheduler import ManualScheduler
from livequery.engine.executor import ExecutionEngine
from livequery.store.memory_store import InMemoryDocumentStore
from livequery.subscription.manager import SubscriptionManager

START_TIME = 1_700_000_000.0


# === FIXTURES: Store and clock ===


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler(start=START_TIME)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Store seeded with a few accounts and FAQs."""
    s = InMemoryDocumentStore()
    s.set_document("accounts", "acc_1", {"userId": "u1", "balance": 120, "createdAt": 3})
    s.set_document("accounts", "acc_2", {"userId": "u1", "balance": 40, "createdAt": 1})
    s.set_document("accounts", "acc_3", {"userId": "u2", "balance": 900, "createdAt": 2})
    s.set_document("faqs", "faq_1", {"order": 2, "isActive": True, "question": "Fees?"})
    s.set_document("faqs", "faq_2", {"order": 1, "isActive": True, "question": "Hours?"})
    s.set_document("faqs", "faq_3", {"order": 3, "isActive": False, "question": "Old"})
    return s


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


# === FIXTURES: Core components ===


@pytest.fixture
def cache(scheduler: ManualScheduler) -> ResultCache:
    return ResultCache(clock=scheduler.now)


@pytest.fixture
def engine(store: InMemoryDocumentStore, cache: ResultCache) -> ExecutionEngine:
    return ExecutionEngine(store, cache)


@pytest.fixture
def manager(
    store: InMemoryDocumentStore, cache: ResultCache, scheduler: ManualScheduler
) -> SubscriptionManager:
    return SubscriptionManager(store, cache, scheduler, base_delay_s=3.0, max_retries=3)


@pytest.fixture
def notifications() -> list:
    return []


@pytest.fixture
def dal(
    store: InMemoryDocumentStore,
    settings: Settings,
    scheduler: ManualScheduler,
    notifications: list,
) -> DataAccessLayer:
    layer = DataAccessLayer(
        store,
        settings,
        scheduler=scheduler,
        cooldown_store=MemoryCooldownStore(),
        notifier=notifications.append,
    )
    yield layer
    layer.close()

