"""Optional fixed-delay retry for AI service calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from meal_tracker.domain.errors import ServiceFailure

_logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    action: str,
    attempts: int = 0,
    delay_seconds: float = 0.3,
) -> T:
    """Await ``func``, retrying ``attempts`` extra times on ServiceFailure."""
    attempt = 0
    while True:
        try:
            return await func()
        except ServiceFailure as exc:
            attempt += 1
            if attempt > attempts:
                raise
            _logger.warning(
                "%s failed (attempt %s/%s): %s", action, attempt, attempts + 1, exc
            )
            await asyncio.sleep(delay_seconds)
