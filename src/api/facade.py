# src/api/facade.py — v3
"""Public API facade: one object wiring store, cache, engine and subscriptions.

Usage:
    from livequery.api.facade import DataAccessLayer
    dal = DataAccessLayer(store)
    accounts = await dal.use_collection(
        "accounts",
        lambda q: q.with_filter("userId", "==", user_id),
        real_time=True,
    )
    accounts.data, accounts.loading, accounts.error, accounts.is_empty
    await accounts.refetch()

The result cache is owned by the instance, not the module, so two layers
never share state and tests stay isolated.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from livequery.api.models import CollectionOptions
from livequery.cache.cooldown_factory import create_cooldown_store
from livequery.cache.result_cache import ResultCache
from livequery.config.settings import Settings
from livequery.controller.state_controller import StateController
from livequery.controller.throttle import ErrorThrottle, Notifier
from livequery.core.scheduler import BaseScheduler, LoopScheduler
from livequery.engine.executor import ExecutionEngine
from livequery.query.constraints import FilterBuilder, create_query
from livequery.subscription.manager import SubscriptionManager

if TYPE_CHECKING:
    from livequery.cache.base_cooldown_store import BaseCooldownStore
    from livequery.store.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


class DataAccessLayer:
    """Entry point for consumers of a remote document store."""

    def __init__(
        self,
        store: BaseDocumentStore,
        settings: Settings | None = None,
        *,
        scheduler: BaseScheduler | None = None,
        cooldown_store: BaseCooldownStore | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Wire the layer.

        Args:
            store: Remote document store adapter.
            settings: Global settings. Loaded from .env if None.
            scheduler: Timer source. Defaults to the running asyncio loop.
            cooldown_store: Persistence for notification cooldowns.
                Built from settings if None.
            notifier: Receives throttled, user-facing error notifications.
        """
        self.settings = settings or Settings()
        self.scheduler = scheduler or LoopScheduler()
        self.store = store
        self.cache = ResultCache(
            clock=self.scheduler.now,
            freshness_window_s=self.settings.cache_freshness_window_s,
        )
        self.engine = ExecutionEngine(
            store, self.cache, cache_enabled=self.settings.cache_enabled
        )
        self.subscriptions = SubscriptionManager(
            store,
            self.cache,
            self.scheduler,
            base_delay_s=self.settings.reconnect_base_delay_s,
            max_retries=self.settings.max_retries,
        )
        self.throttle = ErrorThrottle(
            cooldown_store or create_cooldown_store(self.settings),
            cooldown_s=self.settings.error_cooldown_s,
            clock=self.scheduler.now,
        )
        self.notifier = notifier
        self._controllers: list[StateController] = []

    def controller(
        self,
        collection: str,
        filter_builder: FilterBuilder | None = None,
        *,
        options: CollectionOptions | None = None,
        consumer_id: str | None = None,
    ) -> StateController:
        """Build an unstarted StateController for ``collection``."""
        options = options or CollectionOptions(
            cache_enabled=self.settings.cache_enabled,
            retry_on_error=self.settings.retry_on_error,
            max_retries=self.settings.max_retries,
        )
        controller = StateController(
            create_query(collection, filter_builder),
            engine=self.engine,
            subscriptions=self.subscriptions,
            throttle=self.throttle,
            scheduler=self.scheduler,
            consumer_id=consumer_id,
            real_time=options.real_time,
            cache_enabled=options.cache_enabled,
            retry_on_error=options.retry_on_error,
            max_retries=options.max_retries,
            one_shot_retry_delay_s=self.settings.one_shot_retry_delay_s,
            notifier=self.notifier,
        )
        self._controllers = [c for c in self._controllers if not c.closed]
        self._controllers.append(controller)
        return controller

    async def use_collection(
        self,
        collection: str,
        filter_builder: FilterBuilder | None = None,
        *,
        real_time: bool = False,
        cache_enabled: bool | None = None,
        retry_on_error: bool | None = None,
        max_retries: int | None = None,
        consumer_id: str | None = None,
    ) -> StateController:
        """Single-call configuration surface; returns a started controller.

        Options left as None fall back to CACHE_ENABLED, RETRY_ON_ERROR and
        MAX_RETRIES from settings.
        """
        options = CollectionOptions(
            real_time=real_time,
            cache_enabled=self.settings.cache_enabled if cache_enabled is None else cache_enabled,
            retry_on_error=(
                self.settings.retry_on_error if retry_on_error is None else retry_on_error
            ),
            max_retries=self.settings.max_retries if max_retries is None else max_retries,
        )
        controller = self.controller(
            collection, filter_builder, options=options, consumer_id=consumer_id
        )
        await controller.start()
        return controller

    def clear_cache(self, collection: str) -> int:
        """Drop cached results for ``collection``."""
        return self.cache.invalidate(collection)

    async def check_connection(self) -> bool:
        return await self.engine.check_connection(self.settings.health_check_collection)

    def close(self) -> None:
        """Close every controller created here and any leftover subscriptions."""
        for controller in self._controllers:
            controller.close()
        self._controllers.clear()
        self.subscriptions.close_all()
        logger.info("Data access layer closed")
