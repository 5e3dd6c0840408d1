# src/store/memory_store.py — v1
"""In-process document store implementing BaseDocumentStore.

Evaluates filters, ordering and caps locally and pushes full result sets
to subscribers whenever a watched collection changes. Failures can be
queued to exercise error handling without a hosted backend.
"""

from __future__ import annotations

import logging
import operator as op
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from livequery.core.errors import StoreError, StoreErrorCode
from livequery.core.models import Record
from livequery.query.constraints import Filter, Ordering
from livequery.store.base_document_store import (
    BaseDocumentStore,
    BatchCallback,
    ErrorCallback,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


def _contains_any(actual: Any, expected: Any) -> bool:
    return isinstance(actual, list) and any(v in actual for v in expected)


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": op.eq,
    "!=": op.ne,
    "<": op.lt,
    "<=": op.le,
    ">": op.gt,
    ">=": op.ge,
    "in": lambda actual, expected: actual in expected,
    "not-in": lambda actual, expected: actual not in expected,
    "array-contains": lambda actual, expected: isinstance(actual, list) and expected in actual,
    "array-contains-any": _contains_any,
}


@dataclass(eq=False)
class _Listener:
    collection: str
    filters: tuple[Filter, ...]
    ordering: Ordering | None
    cap: int | None
    on_batch: BatchCallback
    on_error: ErrorCallback
    active: bool = True


@dataclass
class InMemoryDocumentStore(BaseDocumentStore):
    """Dictionary-backed store with live listeners."""

    collections: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)
    query_count: int = 0
    subscribe_count: int = 0
    _listeners: list[_Listener] = field(default_factory=list)
    _query_failures: deque[StoreError] = field(default_factory=deque)
    _subscribe_failures: deque[StoreError] = field(default_factory=deque)

    # --- Document writes ---

    def set_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[doc_id] = dict(fields)
        self._notify(collection)

    def delete_document(self, collection: str, doc_id: str) -> None:
        if self.collections.get(collection, {}).pop(doc_id, None) is not None:
            self._notify(collection)

    # --- Failure injection ---

    def fail_next_query(self, code: StoreErrorCode | str, message: str = "") -> None:
        self._query_failures.append(StoreError(code, message))

    def fail_next_subscribe(self, code: StoreErrorCode | str, message: str = "") -> None:
        """Make the next subscribe() deliver ``code`` instead of a snapshot."""
        self._subscribe_failures.append(StoreError(code, message))

    def break_listeners(self, collection: str, code: StoreErrorCode | str, message: str = "") -> int:
        """Push an error to every live listener on ``collection``; they stop afterwards."""
        broken = 0
        for listener in list(self._listeners):
            if listener.active and listener.collection == collection:
                listener.active = False
                self._listeners.remove(listener)
                listener.on_error(StoreError(code, message))
                broken += 1
        return broken

    @property
    def active_listeners(self) -> int:
        return sum(1 for listener in self._listeners if listener.active)

    # --- BaseDocumentStore ---

    async def query_once(
        self,
        collection: str,
        filters: Sequence[Filter],
        ordering: Ordering | None,
        cap: int | None,
    ) -> list[Record]:
        self.query_count += 1
        if self._query_failures:
            raise self._query_failures.popleft()
        return self._evaluate(collection, tuple(filters), ordering, cap)

    def subscribe(
        self,
        collection: str,
        filters: Sequence[Filter],
        ordering: Ordering | None,
        cap: int | None,
        on_batch: BatchCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        self.subscribe_count += 1
        listener = _Listener(collection, tuple(filters), ordering, cap, on_batch, on_error)

        def unsubscribe() -> None:
            listener.active = False
            if listener in self._listeners:
                self._listeners.remove(listener)

        if self._subscribe_failures:
            listener.active = False
            on_error(self._subscribe_failures.popleft())
            return unsubscribe

        self._listeners.append(listener)
        self._deliver(listener)
        return unsubscribe

    # --- Internals ---

    def _notify(self, collection: str) -> None:
        for listener in list(self._listeners):
            if listener.active and listener.collection == collection:
                self._deliver(listener)

    def _deliver(self, listener: _Listener) -> None:
        try:
            records = self._evaluate(
                listener.collection, listener.filters, listener.ordering, listener.cap
            )
        except StoreError as e:
            listener.active = False
            self._listeners.remove(listener)
            listener.on_error(e)
            return
        listener.on_batch(records)

    def _evaluate(
        self,
        collection: str,
        filters: tuple[Filter, ...],
        ordering: Ordering | None,
        cap: int | None,
    ) -> list[Record]:
        docs = self.collections.get(collection, {})
        matched = [
            (doc_id, fields)
            for doc_id, fields in docs.items()
            if all(_matches(fields, f) for f in filters)
        ]
        if ordering is not None:
            matched = [m for m in matched if ordering.field in m[1]]
            matched.sort(
                key=lambda m: _sort_value(m[1][ordering.field]),
                reverse=ordering.direction == "desc",
            )
        if cap is not None:
            matched = matched[:cap]
        return [Record(id=doc_id, fields=dict(fields)) for doc_id, fields in matched]


def _matches(fields: dict[str, Any], condition: Filter) -> bool:
    compare = _OPERATORS.get(condition.operator)
    if compare is None:
        raise StoreError(
            StoreErrorCode.OTHER, f"Unsupported operator {condition.operator!r}"
        )
    if condition.field not in fields:
        return False
    try:
        return bool(compare(fields[condition.field], condition.value))
    except TypeError:
        return False


def _sort_value(value: Any) -> tuple[int, Any]:
    # Groups by type so mixed-type fields still sort deterministically.
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    return (4, str(value))
