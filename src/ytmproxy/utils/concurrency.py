"""Async combinators shared by the services."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_fallback(
    primary: Callable[[], Awaitable[T]],
    fallback: Callable[[Exception], Awaitable[T]],
    *,
    timeout: float | None = None,
) -> T:
    """Run primary, handing any failure to fallback exactly once.

    With a timeout, primary races a timer and is cancelled when the timer
    wins; fallback then receives the TimeoutError. Cancellation of the
    calling task is never swallowed.

    Args:
        primary: Zero-argument coroutine factory tried first.
        fallback: Coroutine factory receiving the primary's exception.
        timeout: Optional deadline in seconds for primary.

    Returns:
        Result of primary, or of fallback when primary failed.
    """
    try:
        if timeout is None:
            return await primary()
        return await asyncio.wait_for(primary(), timeout=timeout)
    except Exception as e:
        logger.debug("Primary failed (%s), using fallback", type(e).__name__)
        return await fallback(e)
