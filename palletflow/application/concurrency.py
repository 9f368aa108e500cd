"""Retry helper for transactional operations that lose a row-lock race."""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from palletflow.application.exceptions import ConcurrencyConflictError

T = TypeVar("T")

_logger = logging.getLogger(__name__)


async def run_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    backoff_base: float = 0.05,
    max_backoff: float = 1.0,
    operation: str = "operation",
    logger: Optional[logging.Logger] = None,
) -> T:
    """
    Run func, retrying on ConcurrencyConflictError with jittered exponential backoff.

    func must open its own unit of work so every attempt re-reads committed state.
    Any other exception propagates immediately.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    log = logger or _logger
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except ConcurrencyConflictError as exc:
            if attempt >= attempts:
                raise ConcurrencyConflictError(
                    f"{operation} gave up after {attempts} attempts: {exc.message}",
                    attempts=attempts,
                ) from exc
            delay = min(max_backoff, backoff_base * (2 ** (attempt - 1)))
            delay += random.uniform(0, backoff_base)
            log.warning(
                "concurrency_retry",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "delay_seconds": round(delay, 4),
                    "error": exc.message,
                },
            )
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")
