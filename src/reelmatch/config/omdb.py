"""OMDb catalog configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    ResponseHook,
    RetryPolicy,
    ShouldCacheHook,
)

OMDB_BASE_URL = "https://www.omdbapi.com/"
OMDB_TIMEOUT_SECONDS = 10.0
OMDB_CACHE_TTL_SECONDS = 6 * 60 * 60


@dataclass(frozen=True, slots=True)
class OmdbConfig:
    """Holds OMDb API configuration values."""

    api_key: str
    resilience: ResilienceConfig


def default_omdb_resilience(
    *,
    response_hooks: tuple[ResponseHook, ...] = (),
    should_cache: ShouldCacheHook | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="omdb",
        base_url=OMDB_BASE_URL,
        timeout_seconds=OMDB_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        retry=RetryPolicy(total=2),
        cache=CacheConfig(
            backend="sqlite", ttl_seconds=OMDB_CACHE_TTL_SECONDS, should_cache=should_cache
        ),
        response_hooks=response_hooks,
    )


def get_omdb_config(*, resilience: ResilienceConfig | None = None) -> OmdbConfig:
    values = require_env_vars(("OMDB_API_KEY",))
    return OmdbConfig(
        api_key=values["OMDB_API_KEY"],
        resilience=resilience or default_omdb_resilience(),
    )
