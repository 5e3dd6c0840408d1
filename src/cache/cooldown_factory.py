# src/cache/cooldown_factory.py — v1
"""Factory for cooldown store instantiation."""

from __future__ import annotations

from livequery.cache.base_cooldown_store import BaseCooldownStore
from livequery.config.settings import Settings


def create_cooldown_store(settings: Settings | None = None) -> BaseCooldownStore:
    """Instantiate the configured cooldown backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseCooldownStore implementation.
    """
    backend = "memory" if settings is None else settings.cooldown_backend

    if backend == "memory":
        from livequery.cache.memory_cooldown_store import MemoryCooldownStore
        return MemoryCooldownStore()

    if backend == "json":
        from livequery.cache.json_cooldown_store import JsonCooldownStore
        return JsonCooldownStore(path=settings.cooldown_path)  # type: ignore[union-attr]

    if backend == "sqlite":
        from livequery.cache.sqlite_cooldown_store import SqliteCooldownStore
        return SqliteCooldownStore(db_path=settings.cooldown_path)  # type: ignore[union-attr]

    raise ValueError(f"Unsupported cooldown backend: {backend!r}")
