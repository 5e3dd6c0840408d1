# src/cache/memory_cooldown_store.py — v1
"""In-process cooldown store (default COOLDOWN_BACKEND=memory).

Survives controller re-creation within one process, nothing more.
"""

from __future__ import annotations

from livequery.cache.base_cooldown_store import BaseCooldownStore
from livequery.cache.models import CooldownRecord


class MemoryCooldownStore(BaseCooldownStore):
    def __init__(self) -> None:
        self._records: dict[str, CooldownRecord] = {}

    def get(self, key: str) -> CooldownRecord | None:
        return self._records.get(key)

    def put(self, key: str, record: CooldownRecord) -> None:
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def __len__(self) -> int:
        return len(self._records)
