# src/engine/batch.py — v1
"""Concurrent execution of independent store operations.

Every operation runs to completion; failures are collected, not raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class BatchOutcome(BaseModel):
    """Settled result of one batch operation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def execute_batch(
    operations: Sequence[Callable[[], Awaitable[Any]]],
) -> list[BatchOutcome]:
    """Run ``operations`` concurrently and return one outcome per operation, in order."""
    results = await asyncio.gather(*(operation() for operation in operations), return_exceptions=True)

    outcomes: list[BatchOutcome] = []
    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            outcomes.append(BatchOutcome(index=index, error=result))
        else:
            outcomes.append(BatchOutcome(index=index, value=result))

    failed = [o for o in outcomes if not o.ok]
    if failed:
        logger.warning(
            "Batch operation: %d succeeded, %d failed",
            len(outcomes) - len(failed), len(failed),
        )
        for outcome in failed:
            logger.error("Batch operation %d failed: %s", outcome.index, outcome.error)
    return outcomes
