"""Data storage helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reelmatch.config.storage import get_database_config, get_storage_config

if TYPE_CHECKING:
    from pathlib import Path


def get_data_dir() -> Path:
    """Return the directory where reelmatch stores persistent data."""

    return get_storage_config().data_dir


def get_http_cache_path() -> Path:
    """Return the HTTP cache database path, ensuring the data directory exists."""

    return get_storage_config().http_cache_path()


def get_database_uri() -> str:
    """Compute the database URI, respecting overrides."""

    return get_database_config().uri
