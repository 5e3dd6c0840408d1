# tests/unit/api/test_unit_facade.py — v3
"""Tests for api.facade — public entry point."""

from __future__ import annotations

import asyncio

import pytest

from livequery.api.facade import DataAccessLayer
from livequery.cache.memory_cooldown_store import MemoryCooldownStore
from livequery.config.settings import Settings
from livequery.controller.state_controller import StateController


def by_user(user_id: str):
    return lambda q: q.with_filter("userId", "==", user_id)


async def drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


def layer(store, scheduler, **overrides) -> DataAccessLayer:
    settings = Settings(_env_file=None, **overrides)
    return DataAccessLayer(store, settings, scheduler=scheduler, cooldown_store=MemoryCooldownStore())


class TestUseCollection:
    @pytest.mark.asyncio
    async def test_returns_started_controller(self, dal):
        accounts = await dal.use_collection("accounts", by_user("u1"))
        assert isinstance(accounts, StateController)
        assert accounts.loading is False
        assert len(accounts.data) == 2

    @pytest.mark.asyncio
    async def test_defaults_to_one_shot(self, dal, store):
        accounts = await dal.use_collection("accounts")
        assert accounts.real_time is False
        assert store.active_listeners == 0

    @pytest.mark.asyncio
    async def test_consumer_id(self, dal):
        c = await dal.use_collection("faqs", consumer_id="help-page")
        assert c.consumer_id == "help-page"

    @pytest.mark.asyncio
    async def test_controller_is_unstarted(self, dal, store):
        c = dal.controller("accounts")
        assert c.loading is True
        assert store.query_count == 0

    @pytest.mark.asyncio
    async def test_freshness_window_from_settings(self, store, scheduler):
        settings = Settings(_env_file=None, cache_freshness_window_s=10)
        dal = DataAccessLayer(store, settings, scheduler=scheduler, cooldown_store=MemoryCooldownStore())
        await dal.use_collection("accounts")
        scheduler.advance(10)
        await dal.use_collection("accounts")
        assert store.query_count == 2
        dal.close()


class TestUseCollectionSettingsDefaults:
    @pytest.mark.asyncio
    async def test_cache_disabled_in_settings(self, store, scheduler):
        dal = layer(store, scheduler, cache_enabled=False)
        await dal.use_collection("accounts")
        await dal.use_collection("accounts")
        assert len(dal.cache) == 0
        assert store.query_count == 2
        dal.close()

    @pytest.mark.asyncio
    async def test_retry_disabled_in_settings(self, store, scheduler):
        dal = layer(store, scheduler, retry_on_error=False)
        store.fail_next_query("unavailable")
        c = await dal.use_collection("accounts")
        assert scheduler.pending == []
        assert c.error is not None
        dal.close()

    @pytest.mark.asyncio
    async def test_max_retries_from_settings(self, store, scheduler):
        dal = layer(store, scheduler, max_retries=1)
        store.fail_next_query("unavailable")
        store.fail_next_query("unavailable")
        c = await dal.use_collection("accounts")
        assert scheduler.pending == [1.0]
        scheduler.advance(1.0)
        await drain()
        assert scheduler.pending == []
        assert c.loading is False
        assert c.error is not None
        assert store.query_count == 2
        dal.close()

    @pytest.mark.asyncio
    async def test_explicit_arguments_override_settings(self, store, scheduler):
        dal = layer(store, scheduler, cache_enabled=False, retry_on_error=False)
        store.fail_next_query("unavailable")
        c = await dal.use_collection("accounts", cache_enabled=True, retry_on_error=True)
        assert scheduler.pending == [1.0]
        scheduler.advance(1.0)
        await drain()
        assert c.error is None
        assert len(dal.cache) == 1
        dal.close()


class TestCacheOwnership:
    @pytest.mark.asyncio
    async def test_layers_do_not_share_cache(self, store, settings, scheduler):
        first = DataAccessLayer(store, settings, scheduler=scheduler, cooldown_store=MemoryCooldownStore())
        second = DataAccessLayer(store, settings, scheduler=scheduler, cooldown_store=MemoryCooldownStore())
        await first.use_collection("accounts")
        await second.use_collection("accounts")
        assert store.query_count == 2

    @pytest.mark.asyncio
    async def test_clear_cache_forces_remote_call(self, dal, store):
        await dal.use_collection("accounts", by_user("u1"))
        await dal.use_collection("accounts", by_user("u2"))
        await dal.use_collection("faqs")
        assert dal.clear_cache("accounts") == 2
        await dal.use_collection("accounts", by_user("u1"))
        await dal.use_collection("faqs")
        assert store.query_count == 4

    def test_clear_cache_unknown_collection(self, dal):
        assert dal.clear_cache("nothing") == 0


class TestCheckConnection:
    @pytest.mark.asyncio
    async def test_reachable(self, dal):
        assert await dal.check_connection() is True

    @pytest.mark.asyncio
    async def test_unreachable(self, dal, store):
        store.fail_next_query("unavailable")
        assert await dal.check_connection() is False


class TestClose:
    @pytest.mark.asyncio
    async def test_close_releases_every_controller(self, dal, store):
        a = await dal.use_collection("accounts", by_user("u1"), real_time=True)
        b = await dal.use_collection("faqs", real_time=True)
        assert store.active_listeners == 2
        dal.close()
        assert a.closed and b.closed
        assert store.active_listeners == 0
        assert dal.subscriptions.active_handles == []

    @pytest.mark.asyncio
    async def test_default_cooldown_store_from_settings(self, store, settings, scheduler):
        dal = DataAccessLayer(store, settings, scheduler=scheduler)
        store.fail_next_query("permission-denied")
        c = await dal.use_collection("accounts")
        assert c.error == "Access denied. Please check your permissions."
        dal.close()
