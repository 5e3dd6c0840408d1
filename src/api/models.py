# src/api/models.py — v2
"""API-level models: CollectionOptions, SystemConfigResult, StaticCollection."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from livequery.core.models import LiveResult, Record


class CollectionOptions(BaseModel):
    """Per-consumer options accepted by DataAccessLayer.use_collection()."""

    real_time: bool = False
    cache_enabled: bool = True
    retry_on_error: bool = True
    max_retries: int = Field(default=3, ge=0)


class SystemConfigResult(BaseModel):
    """Outcome of loading the single system configuration document."""

    config: dict[str, Any] | None = None
    error: str | None = None

    @property
    def loading(self) -> bool:
        return False


class StaticCollection:
    """Inert consumer result: never loading, never touches the store."""

    def __init__(self, records: list[Record] | None = None, error: str | None = None) -> None:
        self._records = list(records or [])
        self._error = error

    @property
    def data(self) -> list[Record]:
        return list(self._records)

    @property
    def documents(self) -> list[dict[str, Any]]:
        return [record.as_document() for record in self._records]

    @property
    def loading(self) -> bool:
        return False

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_empty(self) -> bool:
        return len(self._records) == 0

    def snapshot(self) -> LiveResult:
        return LiveResult(data=tuple(self._records), loading=False, error=self._error)

    async def refetch(self) -> None:
        return None

    def close(self) -> None:
        return None
