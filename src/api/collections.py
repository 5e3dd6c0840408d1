# src/api/collections.py — v1
"""Ready-made consumers for the dashboard's common collections."""

from __future__ import annotations

import logging

from livequery.api.facade import DataAccessLayer
from livequery.api.models import StaticCollection, SystemConfigResult
from livequery.controller.state_controller import StateController
from livequery.query.constraints import ConstraintSet, create_query

logger = logging.getLogger(__name__)

_INVALID_IDS = {"", "undefined", "null", "none"}


def is_valid_user_id(user_id: str | None) -> bool:
    return bool(user_id) and user_id.strip().lower() not in _INVALID_IDS  # type: ignore[union-attr]


async def use_user_accounts(
    dal: DataAccessLayer, user_id: str | None
) -> StateController | StaticCollection:
    """Live accounts of one user. An unusable id never reaches the store."""
    if not is_valid_user_id(user_id):
        logger.warning("use_user_accounts: invalid user id %r", user_id)
        return StaticCollection()
    return await dal.use_collection(
        "accounts",
        lambda q: q.with_filter("userId", "==", user_id),
        real_time=True,
        cache_enabled=False,
        consumer_id=f"accounts:{user_id}",
    )


async def use_users(dal: DataAccessLayer, include_inactive: bool = False) -> StateController:
    """Admin user list, newest first."""

    def build(q: ConstraintSet) -> ConstraintSet:
        q = q.with_ordering("createdAt", "desc")
        if not include_inactive:
            q = q.with_filter("status", "!=", "inactive")
        return q

    return await dal.use_collection("users", build, cache_enabled=True, consumer_id="admin:users")


async def use_support_requests(dal: DataAccessLayer) -> StateController:
    return await dal.use_collection(
        "support_requests",
        lambda q: q.with_ordering("timestamp", "desc"),
        real_time=True,
        consumer_id="admin:support_requests",
    )


async def use_faqs(dal: DataAccessLayer, active_only: bool = True) -> StateController:
    def build(q: ConstraintSet) -> ConstraintSet:
        q = q.with_ordering("order", "asc")
        if active_only:
            q = q.with_filter("isActive", "==", True)
        return q

    return await dal.use_collection(
        "faqs", build, real_time=True, cache_enabled=True, consumer_id="faqs"
    )


async def fetch_system_config(
    dal: DataAccessLayer, collection: str = "systemConfig"
) -> SystemConfigResult:
    """Load the first document of the system configuration collection."""
    result = await dal.engine.execute(create_query(collection))
    if result.error is not None:
        return SystemConfigResult(error=result.error.message)
    if not result.records:
        return SystemConfigResult(error="System configuration not found")
    return SystemConfigResult(config=result.records[0].as_document())
