"""Bounded exponential-backoff retry for read paths."""

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from libs.common.errors import PermissionDenied, Unauthenticated
from libs.common.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0
MAX_DELAY_SECONDS = 30.0

# Retrying an authorization failure never changes the outcome.
NON_RETRYABLE: Tuple[Type[BaseException], ...] = (PermissionDenied, Unauthenticated)


def next_retry_delay(attempt: int) -> float:
    """Seconds to wait after the zero-based ``attempt`` failed."""
    return min(MAX_DELAY_SECONDS, BASE_DELAY_SECONDS * (2 ** max(attempt, 0)))


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    operation: str,
    attempts: int = MAX_ATTEMPTS,
    non_retryable: Tuple[Type[BaseException], ...] = NON_RETRYABLE,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Await ``fn()`` up to ``attempts`` times, backing off between failures."""
    sleep = sleep or asyncio.sleep
    for attempt in range(attempts):
        try:
            return await fn()
        except non_retryable:
            raise
        except Exception as exc:
            if attempt + 1 >= attempts:
                raise
            delay = next_retry_delay(attempt)
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                operation,
                attempt + 1,
                attempts,
                type(exc).__name__,
                delay,
            )
            await sleep(delay)
    raise RuntimeError("retry_async called with attempts < 1")
