"""Gemini recommendation service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_GEMINI_API_VERSION = "v1beta"


@dataclass(frozen=True, slots=True)
class GeminiConfig:
    api_key: str
    model_name: str
    api_version: str
    resilience: ResilienceConfig
    temperature: float = 0.7
    max_output_tokens: int = 4096


def get_gemini_config(*, resilience: ResilienceConfig | None = None) -> GeminiConfig:
    values = require_env_vars(("GEMINI_API_KEY",))
    return GeminiConfig(
        api_key=values["GEMINI_API_KEY"],
        model_name=optional_env_var("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        api_version=optional_env_var("GEMINI_API_VERSION") or DEFAULT_GEMINI_API_VERSION,
        resilience=resilience
        or ResilienceConfig(
            name="gemini",
            base_url=GEMINI_BASE_URL,
            timeout_seconds=60.0,
            ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
            retry=RetryPolicy(total=1, methods=frozenset({"POST"})),
            # generated suggestions must never be served from cache
            cache=CacheConfig(enabled=False),
        ),
    )
