"""Retry, rate-limit and cache settings for the catalog and recommendation clients."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Literal

import httpx

ResponseHook = Callable[[httpx.Response], Awaitable[None] | None]
ShouldCacheHook = Callable[[object], bool]

TRANSIENT_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


class RetryablePayloadError(httpx.HTTPError):
    """A response whose JSON body reports a condition worth retrying, such as a spent quota."""

    def __init__(self, message: str, *, response: httpx.Response) -> None:
        super().__init__(message)
        self.response = response


TRANSIENT_EXCEPTIONS: tuple[type[httpx.HTTPError], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    RetryablePayloadError,
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries.

    Only idempotent lookups are retried unless ``methods`` says otherwise; a
    generation request is POSTed and opts in explicitly.
    """

    total: int = 2
    backoff_factor: float = 0.5
    methods: frozenset[str] = frozenset({"GET"})


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Response cache; ``sqlite`` lives under the data directory, ``memory`` is per client."""

    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    ttl_seconds: float | None = None
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig = field(default_factory=CacheConfig)
    response_hooks: tuple[ResponseHook, ...] = ()
