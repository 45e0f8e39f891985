"""SQLAlchemy adapter package for reelmatch."""

from __future__ import annotations

from .mappings import create_all_tables, metadata, processing_status_table
from .status_store import (
    SqlAlchemyStatusStore,
    create_status_store,
    status_from_json,
    status_to_json,
)

__all__ = [
    "SqlAlchemyStatusStore",
    "create_all_tables",
    "create_status_store",
    "metadata",
    "processing_status_table",
    "status_from_json",
    "status_to_json",
]
