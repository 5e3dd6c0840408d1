# src/engine/executor.py — v1
"""One-shot query execution with cache consultation.

The engine never retries; callers own their retry policy.
"""

from __future__ import annotations

import logging

from livequery.cache.result_cache import ResultCache
from livequery.core.errors import ErrorKind, classify_error
from livequery.core.models import QueryResult
from livequery.query.constraints import ConstraintSet, create_query
from livequery.store.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """Runs a ConstraintSet once against the store, through the result cache."""

    def __init__(
        self,
        store: BaseDocumentStore,
        cache: ResultCache,
        cache_enabled: bool = True,
    ) -> None:
        self._store = store
        self._cache = cache
        self._cache_enabled = cache_enabled

    @property
    def cache(self) -> ResultCache:
        return self._cache

    async def execute(
        self,
        constraints: ConstraintSet,
        *,
        bypass_cache: bool = False,
        cache_enabled: bool | None = None,
    ) -> QueryResult:
        """Fetch records for ``constraints``.

        Args:
            constraints: Query to run.
            bypass_cache: Skip the freshness check and always hit the store.
                The result is still written to the cache.
            cache_enabled: Per-call override of the engine default. When
                disabled the cache is neither read nor written.

        Returns:
            QueryResult with records, or a classified error and no records.
            A NOT_FOUND failure is reported as an empty success.
        """
        use_cache = self._cache_enabled if cache_enabled is None else cache_enabled
        key = constraints.canonical_key()

        if use_cache and not bypass_cache:
            entry = self._cache.get_fresh(key)
            if entry is not None:
                logger.debug("Returning cached data for %s", constraints.collection)
                return QueryResult(records=list(entry.records), from_cache=True)

        logger.debug("Executing query for %s", constraints.collection)
        try:
            records = await self._store.query_once(
                constraints.collection,
                constraints.filters,
                constraints.ordering,
                constraints.cap,
            )
        except Exception as e:
            error = classify_error(e, f"query {constraints.collection}")
            if error.kind is ErrorKind.NOT_FOUND:
                records = []
            else:
                logger.warning(
                    "Query on %s failed (%s): %s",
                    constraints.collection, error.kind.value, e,
                )
                return QueryResult(error=error)

        if use_cache:
            self._cache.put(key, records)
        logger.debug(
            "Query completed for %s, found %d documents",
            constraints.collection, len(records),
        )
        return QueryResult(records=records)

    async def check_connection(self, collection: str = "systemConfig") -> bool:
        """Check the store with a single capped, uncached query."""
        result = await self.execute(
            create_query(collection).with_cap(1), bypass_cache=True, cache_enabled=False
        )
        if not result.ok:
            logger.error("Connection check failed: %s", result.error.message)  # type: ignore[union-attr]
        return result.ok
