"""Application configuration helpers."""

from __future__ import annotations

from reelmatch.common.logging import configure_logging

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .gemini import GeminiConfig, get_gemini_config
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .ingest import IngestConfig, MatchingConfig, get_ingest_config, get_matching_config
from .omdb import OmdbConfig, get_omdb_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "GeminiConfig",
    "IngestConfig",
    "MatchingConfig",
    "MissingConfigurationError",
    "OmdbConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_gemini_config",
    "get_ingest_config",
    "get_matching_config",
    "get_omdb_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
]
