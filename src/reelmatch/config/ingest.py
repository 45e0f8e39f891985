"""Batch ingestion and matching defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int
from .errors import ConfigurationError

DEFAULT_BATCH_SIZE = 10
DEFAULT_MAX_ERROR_FRACTION = 0.3
DEFAULT_MAX_RETRIES_PER_ITEM = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0
DEFAULT_INTER_BATCH_DELAY_SECONDS = 0.5
DEFAULT_SMALL_RUN_THRESHOLD = 20
DEFAULT_SMALL_RUN_BATCH_SIZE = 5
DEFAULT_STATUS_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_MAX_LOG_LINES = 50

DEFAULT_AUTO_ACCEPT_THRESHOLD = 0.95
DEFAULT_STRONG_THRESHOLD = 0.8
DEFAULT_MAX_SEARCH_RESULTS = 5


@dataclass(frozen=True, slots=True)
class IngestConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    max_error_fraction: float = DEFAULT_MAX_ERROR_FRACTION
    max_retries_per_item: int = DEFAULT_MAX_RETRIES_PER_ITEM
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    inter_batch_delay_seconds: float = DEFAULT_INTER_BATCH_DELAY_SECONDS
    small_run_threshold: int = DEFAULT_SMALL_RUN_THRESHOLD
    small_run_batch_size: int = DEFAULT_SMALL_RUN_BATCH_SIZE
    status_poll_interval_seconds: float = DEFAULT_STATUS_POLL_INTERVAL_SECONDS
    max_log_lines: int = DEFAULT_MAX_LOG_LINES


@dataclass(frozen=True, slots=True)
class MatchingConfig:
    auto_accept_threshold: float = DEFAULT_AUTO_ACCEPT_THRESHOLD
    strong_threshold: float = DEFAULT_STRONG_THRESHOLD
    max_search_results: int = DEFAULT_MAX_SEARCH_RESULTS


def get_ingest_config() -> IngestConfig:
    config = IngestConfig(
        batch_size=env_int("REELMATCH_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        max_error_fraction=env_float("REELMATCH_MAX_ERROR_FRACTION", DEFAULT_MAX_ERROR_FRACTION),
        max_retries_per_item=env_int("REELMATCH_MAX_RETRIES", DEFAULT_MAX_RETRIES_PER_ITEM),
        status_poll_interval_seconds=env_float(
            "REELMATCH_STATUS_POLL_INTERVAL", DEFAULT_STATUS_POLL_INTERVAL_SECONDS
        ),
    )
    _require(config.batch_size >= 1, "REELMATCH_BATCH_SIZE", "must be at least 1")
    _require(
        0.0 <= config.max_error_fraction <= 1.0,
        "REELMATCH_MAX_ERROR_FRACTION",
        "must be between 0 and 1",
    )
    _require(config.max_retries_per_item >= 1, "REELMATCH_MAX_RETRIES", "must be at least 1")
    _require(
        config.status_poll_interval_seconds > 0,
        "REELMATCH_STATUS_POLL_INTERVAL",
        "must be positive",
    )
    return config


def get_matching_config() -> MatchingConfig:
    config = MatchingConfig(
        auto_accept_threshold=env_float(
            "REELMATCH_AUTO_ACCEPT_THRESHOLD", DEFAULT_AUTO_ACCEPT_THRESHOLD
        ),
        strong_threshold=env_float("REELMATCH_STRONG_THRESHOLD", DEFAULT_STRONG_THRESHOLD),
    )
    for name, value in (
        ("REELMATCH_AUTO_ACCEPT_THRESHOLD", config.auto_accept_threshold),
        ("REELMATCH_STRONG_THRESHOLD", config.strong_threshold),
    ):
        _require(0.0 <= value <= 1.0, name, "must be between 0 and 1")
    return config


def _require(condition: bool, setting: str, requirement: str) -> None:  # noqa: FBT001
    if not condition:
        raise ConfigurationError(f"{setting} {requirement}", setting=setting)
