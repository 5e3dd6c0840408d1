# src/logging/context.py — v4
"""Contextual logging support: attach consumer, collection and handle to log records.

consumer_context() and subscription_context() scope the variables to a
block and restore the previous values on exit, so later work in the same
task does not inherit a stale identity.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

_consumer_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "consumer_id", default=None
)
_collection: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "collection", default=None
)
_handle_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "handle_id", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    consumer_id: str | None = None
    collection: str | None = None
    handle_id: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(
        consumer_id=_consumer_id.get(),
        collection=_collection.get(),
        handle_id=_handle_id.get(),
    )


def clear_context() -> None:
    """Reset all context variables."""
    _consumer_id.set(None)
    _collection.set(None)
    _handle_id.set(None)


@contextmanager
def consumer_context(consumer_id: str, collection: str) -> Iterator[None]:
    """Attach consumer and collection to logs emitted inside the block."""
    consumer_token = _consumer_id.set(consumer_id)
    collection_token = _collection.set(collection)
    try:
        yield
    finally:
        _collection.reset(collection_token)
        _consumer_id.reset(consumer_token)


@contextmanager
def subscription_context(handle_id: int) -> Iterator[None]:
    token = _handle_id.set(handle_id)
    try:
        yield
    finally:
        _handle_id.reset(token)
