# src/cache/sqlite_cooldown_store.py — v1
"""SQLite-backed cooldown store (COOLDOWN_BACKEND=sqlite).

Uses stdlib sqlite3. Suited to hosts that run
several sessions against the same state directory.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from livequery.cache.base_cooldown_store import BaseCooldownStore
from livequery.cache.models import CooldownRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cooldown_records (
    key TEXT PRIMARY KEY,
    last_error_signature TEXT NOT NULL,
    last_error_at INTEGER NOT NULL
);
"""


class SqliteCooldownStore(BaseCooldownStore):
    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.executescript(_SCHEMA)

    def get(self, key: str) -> CooldownRecord | None:
        row = self._conn.execute(
            "SELECT last_error_signature, last_error_at FROM cooldown_records WHERE key = ?",
            (key,),
        ).fetchone()
        if row is None:
            return None
        return CooldownRecord(last_error_signature=row[0], last_error_at=row[1])

    def put(self, key: str, record: CooldownRecord) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO cooldown_records
               (key, last_error_signature, last_error_at) VALUES (?, ?, ?)""",
            (key, record.last_error_signature, record.last_error_at),
        )
        self._conn.commit()

    def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM cooldown_records WHERE key = ?", (key,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
