"""Fixed-delay retry for async operations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from logging import getLogger

from reelmatch.domain.errors import TransientServiceError

log = getLogger(__name__)

type Sleep = Callable[[float], Awaitable[None]]


async def retry_with_backoff[T](
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    retry_on: tuple[type[BaseException], ...] = (TransientServiceError,),
    label: str | None = None,
) -> T:
    """Await ``func()`` up to ``max_retries`` times, sleeping ``delay`` between attempts.

    Only exceptions listed in ``retry_on`` trigger another attempt; anything
    else propagates immediately. After the last attempt the final error is
    re-raised unchanged.
    """

    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    attempt = 1
    while True:
        try:
            return await func()
        except retry_on as exc:
            if attempt >= max_retries:
                log.warning("%s failed after %d attempts: %s", label or "operation", attempt, exc)
                raise
            log.info(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                label or "operation",
                attempt,
                max_retries,
                exc,
                delay,
            )
            attempt += 1
            await sleep(delay)
