"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import CatalogService
from .recommendation import RecommendationService
from .status import StatusStore

__all__ = [
    "CatalogService",
    "RecommendationService",
    "StatusStore",
]
