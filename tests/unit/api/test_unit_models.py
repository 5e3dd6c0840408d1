# tests/unit/api/test_models.py — v2
"""Tests for api/models.py — consumer options and inert results."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from livequery.api.models import CollectionOptions, StaticCollection, SystemConfigResult
from livequery.core.models import Record


class TestCollectionOptions:
    def test_defaults(self):
        o = CollectionOptions()
        assert o.real_time is False
        assert o.cache_enabled is True
        assert o.retry_on_error is True
        assert o.max_retries == 3

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            CollectionOptions(max_retries=-1)


class TestStaticCollection:
    def test_empty(self):
        s = StaticCollection()
        assert s.loading is False
        assert s.error is None
        assert s.is_empty is True
        assert s.snapshot().is_empty is True

    def test_with_records(self):
        s = StaticCollection([Record(id="a", fields={"x": 1})])
        assert s.documents == [{"id": "a", "x": 1}]
        assert s.is_empty is False

    @pytest.mark.asyncio
    async def test_refetch_and_close_are_noops(self):
        s = StaticCollection(error="nope")
        await s.refetch()
        s.close()
        assert s.error == "nope"


class TestSystemConfigResult:
    def test_never_loading(self):
        assert SystemConfigResult(config={"a": 1}).loading is False
