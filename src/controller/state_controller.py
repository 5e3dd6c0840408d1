# src/controller/state_controller.py — v2
"""Per-consumer orchestration of one-shot fetches and live subscriptions.

A StateController owns at most one SubscriptionHandle at a time and
exposes the uniform contract: data, loading, error, is_empty, refetch().
Every asynchronous result carries the generation it was started under;
results from a superseded generation are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from livequery.controller.throttle import ErrorNotification, ErrorThrottle, Notifier
from livequery.core.errors import QueryError
from livequery.core.models import ConsumerState, LiveResult, QueryResult, Record
from livequery.core.scheduler import BaseScheduler, TimerHandle
from livequery.engine.executor import ExecutionEngine
from livequery.engine.retry import RetryPolicy
from livequery.logging.context import consumer_context
from livequery.query.constraints import ConstraintSet
from livequery.subscription.manager import (
    DeliveryFailure,
    SubscriptionHandle,
    SubscriptionManager,
)

logger = logging.getLogger(__name__)

Listener = Callable[[LiveResult], None]


class StateController:
    """Live view of one ConstraintSet for one consumer."""

    def __init__(
        self,
        constraints: ConstraintSet,
        *,
        engine: ExecutionEngine,
        subscriptions: SubscriptionManager,
        throttle: ErrorThrottle,
        scheduler: BaseScheduler,
        consumer_id: str | None = None,
        real_time: bool = False,
        cache_enabled: bool = True,
        retry_on_error: bool = True,
        max_retries: int = 3,
        one_shot_retry_delay_s: float = 1.0,
        notifier: Notifier | None = None,
    ) -> None:
        self.consumer_id = consumer_id or constraints.canonical_key()
        self._constraints = constraints
        self._engine = engine
        self._subscriptions = subscriptions
        self._throttle = throttle
        self._scheduler = scheduler
        self._real_time = real_time
        self._cache_enabled = cache_enabled
        self._retry_on_error = retry_on_error
        self._retry_policy = RetryPolicy(
            max_retries=max_retries, base_delay_s=one_shot_retry_delay_s, backoff="linear"
        )
        self._notifier = notifier

        self._state = ConsumerState()
        self._handle: SubscriptionHandle | None = None
        self._fetch_generation = 0
        self._subscription_generation = 0
        self._retry_count = 0
        self._retry_timer: TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[Listener] = []
        self._closed = False

    # --- Consumer contract ---

    @property
    def data(self) -> list[Record]:
        return list(self._state.records)

    @property
    def documents(self) -> list[dict[str, Any]]:
        return [record.as_document() for record in self._state.records]

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def is_empty(self) -> bool:
        return not self._state.loading and len(self._state.records) == 0

    @property
    def state(self) -> ConsumerState:
        return self._state.model_copy(deep=True)

    @property
    def constraints(self) -> ConstraintSet:
        return self._constraints

    @property
    def real_time(self) -> bool:
        return self._real_time

    @property
    def handle(self) -> SubscriptionHandle | None:
        return self._handle

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> LiveResult:
        return LiveResult(
            data=tuple(self._state.records),
            loading=self._state.loading,
            error=self._state.error,
        )

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every state change."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # --- Lifecycle ---

    async def start(self) -> None:
        """Begin loading in the configured mode, replacing any current load."""
        if self._closed:
            raise RuntimeError(f"Controller {self.consumer_id} is closed")
        self._release()
        self._retry_count = 0
        if self._real_time:
            self._open_subscription()
        else:
            await self._fetch(bypass_cache=False)

    async def reconfigure(
        self,
        constraints: ConstraintSet | None = None,
        real_time: bool | None = None,
    ) -> None:
        """Switch query and/or mode. The current handle is released first."""
        changed = False
        if constraints is not None and constraints != self._constraints:
            self._constraints = constraints
            changed = True
        if real_time is not None and real_time != self._real_time:
            self._real_time = real_time
            changed = True
        if not changed:
            return
        await self.start()

    async def refetch(self) -> None:
        """One-shot fetch that always hits the store, ignoring cache freshness."""
        if self._closed:
            return
        self._cancel_retry_timer()
        self._retry_count = 0
        await self._fetch(bypass_cache=True)

    def close(self) -> None:
        """Release everything; later callbacks are ignored. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._release()
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()

    # --- One-shot ---

    async def _fetch(self, bypass_cache: bool) -> None:
        self._fetch_generation += 1
        await self._run_fetch(self._fetch_generation, bypass_cache)

    async def _run_fetch(self, generation: int, bypass_cache: bool) -> None:
        with consumer_context(self.consumer_id, self._constraints.collection):
            self._update(loading=True, error=None)
            result = await self._engine.execute(
                self._constraints,
                bypass_cache=bypass_cache,
                cache_enabled=self._cache_enabled,
            )
            if self._closed or generation != self._fetch_generation:
                logger.debug("Dropping stale fetch result for %s", self._constraints.collection)
                return
            self._apply_fetch_result(generation, result)

    def _apply_fetch_result(self, generation: int, result: QueryResult) -> None:
        error = result.error
        if error is None:
            self._retry_count = 0
            self._update(records=result.records, loading=False, error=None)
            self._throttle.reset(self.consumer_id, self._constraints.collection)
            return

        if self._retry_on_error and error.retryable and self._retry_policy.allows(self._retry_count):
            delay = self._retry_policy.delay(self._retry_count)
            self._retry_count += 1
            logger.info(
                "Retrying fetch for %s (%d/%d) in %.1fs",
                self._constraints.collection,
                self._retry_count, self._retry_policy.max_retries, delay,
            )
            self._update(error=error.message)
            self._report(error)
            self._retry_timer = self._scheduler.call_later(
                delay, lambda: self._on_retry_timer(generation)
            )
            return

        self._update(records=[], loading=False, error=error.message)
        self._report(error)

    def _on_retry_timer(self, generation: int) -> None:
        self._retry_timer = None
        if self._closed or generation != self._fetch_generation:
            return
        task = asyncio.get_running_loop().create_task(
            self._run_fetch(generation, bypass_cache=True)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _cancel_retry_timer(self) -> None:
        timer, self._retry_timer = self._retry_timer, None
        if timer is not None:
            timer.cancel()

    # --- Continuous ---

    def _open_subscription(self) -> None:
        self._subscription_generation += 1
        generation = self._subscription_generation

        records = self._state.records
        if self._cache_enabled:
            entry = self._engine.cache.get_fresh(self._constraints.canonical_key())
            if entry is not None:
                records = entry.records
        self._update(records=records, loading=True, error=None)

        with consumer_context(self.consumer_id, self._constraints.collection):
            self._handle = self._subscriptions.subscribe(
                self._constraints,
                lambda batch: self._on_batch(generation, batch),
                lambda failure: self._on_failure(generation, failure),
                retry_on_error=self._retry_on_error,
                max_retries=self._retry_policy.max_retries,
                cache_enabled=self._cache_enabled,
            )

    def _on_batch(self, generation: int, records: list[Record]) -> None:
        if self._closed or generation != self._subscription_generation:
            return
        with consumer_context(self.consumer_id, self._constraints.collection):
            self._update(records=records, loading=False, error=None)
            self._throttle.reset(self.consumer_id, self._constraints.collection)

    def _on_failure(self, generation: int, failure: DeliveryFailure) -> None:
        if self._closed or generation != self._subscription_generation:
            return
        with consumer_context(self.consumer_id, self._constraints.collection):
            # Last delivered records stay visible during an outage.
            self._update(loading=False, error=failure.error.message)
            self._report(failure.error)

    # --- Shared ---

    def _release(self) -> None:
        self._subscription_generation += 1
        self._fetch_generation += 1
        self._cancel_retry_timer()
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _report(self, error: QueryError) -> None:
        collection = self._constraints.collection
        logger.error("Error for %s (%s): %s", collection, error.kind.value, error.message)
        if not self._throttle.should_notify(self.consumer_id, collection, error):
            return
        self._state.last_error_signature = error.signature
        self._state.last_error_at = self._scheduler.now_ms()
        if self._notifier is not None:
            self._notifier(
                ErrorNotification(
                    consumer_id=self.consumer_id,
                    collection=collection,
                    message=error.message,
                    kind=error.kind,
                    signature=error.signature,
                )
            )

    def _update(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self._state, name, value)
        if self._listeners:
            snapshot = self.snapshot()
            for listener in list(self._listeners):
                listener(snapshot)
