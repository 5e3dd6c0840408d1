# src/controller/throttle.py — v1
"""Cooldown-based de-duplication of user-facing error notifications.

A reconnect storm repeats the same transient error; only the first
occurrence of a signature per consumer+collection is surfaced within the
cooldown window. Permanent errors always pass. The window is measured
from the last *surfaced* notification.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic import BaseModel

from livequery.cache.base_cooldown_store import BaseCooldownStore
from livequery.cache.models import CooldownRecord
from livequery.core.errors import ErrorKind, QueryError

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_S = 30.0


class ErrorNotification(BaseModel):
    """Externally visible error event (e.g. a toast)."""

    consumer_id: str
    collection: str
    message: str
    kind: ErrorKind
    signature: str


Notifier = Callable[[ErrorNotification], None]


class ErrorThrottle:
    def __init__(
        self,
        store: BaseCooldownStore,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._cooldown_ms = int(cooldown_s * 1000)
        self._clock = clock

    def should_notify(self, consumer_id: str, collection: str, error: QueryError) -> bool:
        """Decide whether ``error`` is surfaced, recording it when it is."""
        key = self._store.make_key(consumer_id, collection)
        now_ms = int(self._clock() * 1000)

        if not error.permanent:
            record = self._read(key)
            if (
                record is not None
                and record.last_error_signature == error.signature
                and now_ms - record.last_error_at < self._cooldown_ms
            ):
                logger.debug("Suppressing duplicate error for %s: %s", key, error.signature)
                return False

        self._write(key, CooldownRecord(last_error_signature=error.signature, last_error_at=now_ms))
        return True

    def reset(self, consumer_id: str, collection: str) -> None:
        """Forget the last notification (called after a successful delivery)."""
        key = self._store.make_key(consumer_id, collection)
        try:
            self._store.delete(key)
        except Exception as e:
            logger.warning("Failed to reset cooldown record %s: %s", key, e)

    def _read(self, key: str) -> CooldownRecord | None:
        try:
            return self._store.get(key)
        except Exception as e:
            logger.warning("Ignoring unreadable cooldown record %s: %s", key, e)
            return None

    def _write(self, key: str, record: CooldownRecord) -> None:
        try:
            self._store.put(key, record)
        except Exception as e:
            logger.warning("Failed to persist cooldown record %s: %s", key, e)
