# src/cache/models.py — v2
"""Cache domain models: CacheEntry, CooldownRecord."""

from __future__ import annotations

from pydantic import BaseModel

from livequery.core.models import Record


class CacheEntry(BaseModel):
    """Last-known result set for one canonical query key."""

    key: str
    collection: str
    records: list[Record]
    fetched_at: float


class CooldownRecord(BaseModel):
    """Last externally notified error for a consumer+collection pair."""

    last_error_signature: str
    last_error_at: int
