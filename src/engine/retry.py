# src/engine/retry.py — v3
"""Retry policies and backoff delay functions.

Delays are pure functions of the attempt index so that callers can
schedule them on any clock. with_retry() wraps ad-hoc store operations
(writes, health checks) that are not driven by a StateController.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

from livequery.core.errors import QueryError, classify_error

logger = logging.getLogger(__name__)


class RetryExhausted(Exception):
    """All retries exhausted (or a non-retryable error) for an operation."""

    def __init__(self, operation: str, error: QueryError, attempts: int, last_error: BaseException):
        self.operation = operation
        self.error = error
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Operation '{operation}' failed after {attempts} attempts ({error.kind.value}): {last_error}"
        )


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry and how long to wait between attempts."""

    max_retries: int
    base_delay_s: float
    backoff: Literal["exponential", "linear"] = "exponential"
    backoff_factor: float = 2.0

    def delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        if self.backoff == "linear":
            return self.base_delay_s * (attempt + 1)
        return self.base_delay_s * (self.backoff_factor ** attempt)

    def allows(self, attempts_made: int) -> bool:
        """True if another retry is permitted after ``attempts_made`` retries."""
        return attempts_made < self.max_retries


def reconnect_delay(attempt: int, base_delay_s: float = 3.0) -> float:
    """Subscription reconnect delay: 3s, 6s, 12s... for attempt 0, 1, 2..."""
    return base_delay_s * (2 ** attempt)


# Three attempts in total, 1s then 2s apart.
DEFAULT_OPERATION_POLICY = RetryPolicy(max_retries=2, base_delay_s=1.0)


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    operation: str = "operation",
    policy: RetryPolicy = DEFAULT_OPERATION_POLICY,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any,
) -> Any:
    """Execute an async function, retrying transient failures.

    Makes at most ``policy.max_retries + 1`` attempts. Permanent failures
    are raised immediately without retrying.

    Raises:
        RetryExhausted: If the error is permanent or all retries are used.
    """
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            error = classify_error(e, operation)
            attempts += 1

            if not error.retryable or attempts > policy.max_retries:
                raise RetryExhausted(operation, error, attempts, e) from e

            delay = policy.delay(attempts - 1)
            logger.warning(
                "Operation '%s': %s (attempt %d/%d), retrying in %.1fs",
                operation, error.code.value, attempts, policy.max_retries, delay,
            )
            await sleep(delay)
