# src/subscription/manager.py — v2
"""Long-lived push subscriptions with classified reconnect-with-backoff.

Per handle:

    CONNECTING --batch--> STREAMING --error--> RECONNECTING --timer--> CONNECTING
         |                                          |
         +--permanent / retries exhausted------> FAILED
    any state --cancel()--> CANCELLED

Permanent errors (unauthenticated, permission-denied) are never retried.
Transient and unknown errors are retried after reconnect_delay(attempt),
at most ``max_retries`` times in a row; a successful delivery resets the
count. A not-found error delivers an empty batch and then reopens the
channel on the same backoff, without surfacing an error unless the
retries run out. The previous channel is always closed before a
reconnect is scheduled, and callbacks from closed channels are dropped.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from livequery.cache.result_cache import ResultCache
from livequery.core.errors import ErrorKind, QueryError, classify_error
from livequery.core.models import Record
from livequery.core.scheduler import BaseScheduler, TimerHandle
from livequery.engine.retry import reconnect_delay
from livequery.logging.context import subscription_context
from livequery.query.constraints import ConstraintSet
from livequery.store.base_document_store import BaseDocumentStore
from livequery.subscription.channel import Channel

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    CONNECTING = "connecting"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"
    FAILED = "failed"
    CANCELLED = "cancelled"


_TERMINAL = (SubscriptionState.FAILED, SubscriptionState.CANCELLED)


@dataclass
class RetryState:
    attempt: int = 0
    classification: ErrorKind | None = None

    def reset(self) -> None:
        self.attempt = 0
        self.classification = None


class DeliveryFailure(BaseModel):
    """An error forwarded from a subscription to its owner."""

    error: QueryError
    attempt: int
    will_retry: bool
    retry_in_s: float | None = None


OnBatch = Callable[[list[Record]], None]
OnFailure = Callable[[DeliveryFailure], None]


class SubscriptionHandle:
    """A subscription owned by one consumer. Only the manager mutates it."""

    def __init__(
        self,
        manager: SubscriptionManager,
        handle_id: int,
        constraints: ConstraintSet,
        on_batch: OnBatch,
        on_error: OnFailure,
        retry_on_error: bool,
        max_retries: int,
        cache_enabled: bool,
    ) -> None:
        self.handle_id = handle_id
        self.constraints = constraints
        self.state = SubscriptionState.CONNECTING
        self.retry_state = RetryState()
        self.reconnects = 0
        self._manager = manager
        self._on_batch = on_batch
        self._on_error = on_error
        self._retry_on_error = retry_on_error
        self._max_retries = max_retries
        self._cache_enabled = cache_enabled
        self._channel: Channel | None = None
        self._timer: TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self.state not in _TERMINAL

    def cancel(self) -> None:
        """Release the subscription. Idempotent; discards pending reconnects."""
        self._manager._cancel(self)

    def __repr__(self) -> str:
        return (
            f"SubscriptionHandle(id={self.handle_id}, "
            f"collection={self.constraints.collection!r}, state={self.state.value})"
        )


class SubscriptionManager:
    """Opens and supervises SubscriptionHandles against one document store."""

    def __init__(
        self,
        store: BaseDocumentStore,
        cache: ResultCache,
        scheduler: BaseScheduler,
        base_delay_s: float = 3.0,
        max_retries: int = 3,
    ) -> None:
        self._store = store
        self._cache = cache
        self._scheduler = scheduler
        self._base_delay_s = base_delay_s
        self._max_retries = max_retries
        self._handle_ids = itertools.count(1)
        self._generations = itertools.count(1)
        self._handles: dict[int, SubscriptionHandle] = {}

    @property
    def active_handles(self) -> list[SubscriptionHandle]:
        return [h for h in self._handles.values() if h.active]

    def subscribe(
        self,
        constraints: ConstraintSet,
        on_batch: OnBatch,
        on_error: OnFailure,
        *,
        retry_on_error: bool = True,
        max_retries: int | None = None,
        cache_enabled: bool = True,
    ) -> SubscriptionHandle:
        """Open a new handle and start connecting immediately."""
        handle = SubscriptionHandle(
            manager=self,
            handle_id=next(self._handle_ids),
            constraints=constraints,
            on_batch=on_batch,
            on_error=on_error,
            retry_on_error=retry_on_error,
            max_retries=self._max_retries if max_retries is None else max_retries,
            cache_enabled=cache_enabled,
        )
        self._handles[handle.handle_id] = handle
        logger.info(
            "Setting up real-time listener #%d for %s",
            handle.handle_id, constraints.collection,
        )
        self._connect(handle)
        return handle

    def close_all(self) -> None:
        for handle in list(self._handles.values()):
            handle.cancel()
    # --- State machine ---

    def _connect(self, handle: SubscriptionHandle) -> None:
        if not handle.active:
            return
        handle.state = SubscriptionState.CONNECTING
        channel = Channel(next(self._generations))
        handle._channel = channel
        c = handle.constraints
        with subscription_context(handle.handle_id):
            try:
                unsubscribe = self._store.subscribe(
                    c.collection,
                    c.filters,
                    c.ordering,
                    c.cap,
                    lambda records: self._deliver(handle, channel, records),
                    lambda exc: self._fail(handle, channel, exc),
                )
            except Exception as e:
                logger.error("Error setting up real-time listener for %s: %s", c.collection, e)
                self._fail(handle, channel, e)
                return
        channel.attach(unsubscribe)

    def _is_current(self, handle: SubscriptionHandle, channel: Channel) -> bool:
        return (
            handle._channel is channel
            and not channel.closed
            and handle.state in (SubscriptionState.CONNECTING, SubscriptionState.STREAMING)
        )

    def _deliver(
        self, handle: SubscriptionHandle, channel: Channel, records: list[Record]
    ) -> None:
        if not self._is_current(handle, channel):
            logger.debug("Dropping batch from stale channel %r", channel)
            return
        handle.state = SubscriptionState.STREAMING
        handle.retry_state.reset()
        with subscription_context(handle.handle_id):
            self._emit(handle, records)

    def _emit(self, handle: SubscriptionHandle, records: list[Record]) -> None:
        if handle._cache_enabled:
            self._cache.put(handle.constraints.canonical_key(), records)
        logger.debug(
            "Real-time update for %s with %d documents",
            handle.constraints.collection, len(records),
        )
        handle._on_batch(records)

    def _fail(self, handle: SubscriptionHandle, channel: Channel, exc: BaseException) -> None:
        if not self._is_current(handle, channel):
            logger.debug("Dropping error from stale channel %r: %s", channel, exc)
            return
        with subscription_context(handle.handle_id):
            self._handle_failure(handle, channel, exc)

    def _handle_failure(
        self, handle: SubscriptionHandle, channel: Channel, exc: BaseException
    ) -> None:
        collection = handle.constraints.collection
        error = classify_error(exc, f"real-time {collection}")
        channel.close()
        retry = handle.retry_state

        if error.kind is ErrorKind.NOT_FOUND:
            # Empty result for the consumer, but the channel is gone.
            retry.classification = ErrorKind.NOT_FOUND
            self._emit(handle, [])
            if not handle.active:
                return
            if retry.attempt < handle._max_retries:
                delay = self._schedule_reconnect(handle)
                logger.info(
                    "No documents found for %s, reopening listener in %.1fs",
                    collection, delay,
                )
                return
            self._give_up(handle, error)
            return

        if error.permanent:
            retry.classification = ErrorKind.PERMANENT
            handle.state = SubscriptionState.FAILED
            logger.warning(
                "Authentication/permission error in real-time listener for %s, not retrying",
                collection,
            )
            handle._on_error(DeliveryFailure(error=error, attempt=retry.attempt, will_retry=False))
            return

        retry.classification = ErrorKind.TRANSIENT
        if handle._retry_on_error and retry.attempt < handle._max_retries:
            delay = self._schedule_reconnect(handle)
            logger.warning(
                "Retrying real-time listener for %s (%d/%d) in %.1fs",
                collection, retry.attempt, handle._max_retries, delay,
            )
            handle._on_error(
                DeliveryFailure(
                    error=error, attempt=retry.attempt, will_retry=True, retry_in_s=delay
                )
            )
            return

        self._give_up(handle, error)

    def _schedule_reconnect(self, handle: SubscriptionHandle) -> float:
        retry = handle.retry_state
        delay = reconnect_delay(retry.attempt, self._base_delay_s)
        retry.attempt += 1
        handle.state = SubscriptionState.RECONNECTING
        handle._timer = self._scheduler.call_later(delay, lambda: self._reconnect(handle))
        return delay

    def _give_up(self, handle: SubscriptionHandle, error: QueryError) -> None:
        handle.state = SubscriptionState.FAILED
        if handle._retry_on_error:
            logger.error(
                "Max retries exceeded for real-time listener: %s", handle.constraints.collection
            )
        handle._on_error(
            DeliveryFailure(error=error, attempt=handle.retry_state.attempt, will_retry=False)
        )

    def _reconnect(self, handle: SubscriptionHandle) -> None:
        handle._timer = None
        if handle.state is not SubscriptionState.RECONNECTING:
            return
        handle.reconnects += 1
        self._connect(handle)

    def _cancel(self, handle: SubscriptionHandle) -> None:
        if handle.state is SubscriptionState.CANCELLED:
            return
        handle.state = SubscriptionState.CANCELLED
        timer, handle._timer = handle._timer, None
        if timer is not None:
            timer.cancel()
        if handle._channel is not None:
            handle._channel.close()
        self._handles.pop(handle.handle_id, None)
        logger.debug("Released listener #%d for %s", handle.handle_id, handle.constraints.collection)
