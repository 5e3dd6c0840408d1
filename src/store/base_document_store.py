# src/store/base_document_store.py — v1
"""Abstract remote document store adapter.

Adapters translate a backend's native errors into StoreError with one of
the StoreErrorCode values; that is the only place backend error shapes
are known.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Sequence

from livequery.core.models import Record
from livequery.query.constraints import Filter, Ordering

BatchCallback = Callable[[list[Record]], None]
ErrorCallback = Callable[[BaseException], None]
Unsubscribe = Callable[[], None]


class BaseDocumentStore(ABC):
    """Query and subscribe primitives of a hosted document store."""

    @abstractmethod
    async def query_once(
        self,
        collection: str,
        filters: Sequence[Filter],
        ordering: Ordering | None,
        cap: int | None,
    ) -> list[Record]:
        """Run a single query.

        Raises:
            StoreError: On any backend failure.
        """

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        filters: Sequence[Filter],
        ordering: Ordering | None,
        cap: int | None,
        on_batch: BatchCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        """Open a push channel; ``on_batch`` receives full result sets.

        Delivery may start before this call returns. After ``on_error``
        the channel delivers nothing further.
        """
