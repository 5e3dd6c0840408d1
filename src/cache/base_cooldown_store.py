# src/cache/base_cooldown_store.py — v1
"""Abstract store for error-notification cooldown records.

Records are advisory: a backend may lose or reset them at any time, and
readers must treat an unreadable record as absent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from livequery.cache.models import CooldownRecord


class BaseCooldownStore(ABC):
    """Key-value interface for CooldownRecord persistence."""

    @abstractmethod
    def get(self, key: str) -> CooldownRecord | None:
        """Retrieve the record for ``key``, or None if absent/unreadable."""

    @abstractmethod
    def put(self, key: str, record: CooldownRecord) -> None:
        """Store (overwrite) the record for ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the record for ``key`` if present."""

    @staticmethod
    def make_key(consumer_id: str, collection: str) -> str:
        """Namespace a record by consumer identity and collection."""
        return f"{consumer_id}:{collection}"
