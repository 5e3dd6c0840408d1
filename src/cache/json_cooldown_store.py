# src/cache/json_cooldown_store.py — v1
"""JSON file-backed cooldown store (COOLDOWN_BACKEND=json).

All records live in a single JSON object keyed by ``consumer:collection``.
A corrupt or unreadable file is treated as empty and overwritten on the
next write.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from livequery.cache.base_cooldown_store import BaseCooldownStore
from livequery.cache.models import CooldownRecord

logger = logging.getLogger(__name__)


class JsonCooldownStore(BaseCooldownStore):
    """Cooldown records persisted to one JSON file."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> CooldownRecord | None:
        raw = self._load().get(key)
        if raw is None:
            return None
        try:
            return CooldownRecord(**raw)
        except (TypeError, ValidationError) as e:
            logger.warning("Discarding unreadable cooldown record %s: %s", key, e)
            return None

    def put(self, key: str, record: CooldownRecord) -> None:
        data = self._load()
        data[key] = record.model_dump()
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def _load(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read cooldown file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, dict]) -> None:
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
