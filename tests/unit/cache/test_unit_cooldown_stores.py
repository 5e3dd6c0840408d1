# tests/unit/cache/test_cooldown_stores.py — v1
"""Tests for cooldown store backends and factory."""

from __future__ import annotations

import pytest

from livequery.cache.base_cooldown_store import BaseCooldownStore
from livequery.cache.cooldown_factory import create_cooldown_store
from livequery.cache.json_cooldown_store import JsonCooldownStore
from livequery.cache.memory_cooldown_store import MemoryCooldownStore
from livequery.cache.models import CooldownRecord
from livequery.cache.sqlite_cooldown_store import SqliteCooldownStore
from livequery.config.settings import Settings


@pytest.fixture
def sample_record() -> CooldownRecord:
    return CooldownRecord(last_error_signature="unavailable:down", last_error_at=1000)


class TestBaseCooldownStore:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseCooldownStore()  # type: ignore[abstract]

    def test_make_key(self):
        assert BaseCooldownStore.make_key("dash", "accounts") == "dash:accounts"


@pytest.fixture(params=["memory", "json", "sqlite"])
def any_store(request, tmp_path) -> BaseCooldownStore:
    if request.param == "memory":
        return MemoryCooldownStore()
    if request.param == "json":
        return JsonCooldownStore(tmp_path / "cooldown.json")
    return SqliteCooldownStore(tmp_path / "cooldown.db")


class TestCooldownStoreContract:
    def test_get_missing(self, any_store):
        assert any_store.get("x:y") is None

    def test_put_get_delete(self, any_store, sample_record):
        any_store.put("x:y", sample_record)
        assert any_store.get("x:y") == sample_record
        any_store.delete("x:y")
        assert any_store.get("x:y") is None

    def test_delete_missing_is_noop(self, any_store):
        any_store.delete("never:there")

    def test_overwrite(self, any_store, sample_record):
        any_store.put("x:y", sample_record)
        newer = CooldownRecord(last_error_signature="other", last_error_at=5000)
        any_store.put("x:y", newer)
        assert any_store.get("x:y") == newer


class TestJsonCooldownStore:
    def test_survives_new_instance(self, tmp_path, sample_record):
        path = tmp_path / "cooldown.json"
        JsonCooldownStore(path).put("dash:accounts", sample_record)
        assert JsonCooldownStore(path).get("dash:accounts") == sample_record

    def test_corrupt_file_treated_as_empty(self, tmp_path, sample_record):
        path = tmp_path / "cooldown.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonCooldownStore(path)
        assert store.get("dash:accounts") is None
        store.put("dash:accounts", sample_record)
        assert store.get("dash:accounts") == sample_record

    def test_invalid_record_discarded(self, tmp_path):
        path = tmp_path / "cooldown.json"
        path.write_text('{"dash:accounts": {"last_error_at": "soon"}}', encoding="utf-8")
        assert JsonCooldownStore(path).get("dash:accounts") is None


class TestCreateCooldownStore:
    def test_default_memory(self):
        assert isinstance(create_cooldown_store(), MemoryCooldownStore)

    def test_json_backend(self, tmp_path):
        s = Settings(_env_file=None, cooldown_backend="json", cooldown_path=tmp_path / "c.json")
        assert isinstance(create_cooldown_store(s), JsonCooldownStore)

    def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, cooldown_backend="sqlite", cooldown_path=tmp_path / "c.db")
        assert isinstance(create_cooldown_store(s), SqliteCooldownStore)

    def test_unsupported_backend(self):
        with pytest.raises((ValueError, Exception)):
            s = Settings(_env_file=None, cooldown_backend="redis")
            create_cooldown_store(s)
