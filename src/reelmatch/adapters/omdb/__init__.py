"""Public interface for the OMDb catalog adapter."""

from __future__ import annotations

from .catalog import OmdbCatalog
from .client import (
    OmdbAPIError,
    OmdbAuthenticationError,
    OmdbClient,
    default_resilience,
    raise_on_retryable_payload,
    should_cache_payload,
)
from .schema import SearchItem, SearchResponse, TitleResponse
from .translator import translate_search_item, translate_title

__all__ = [
    "OmdbAPIError",
    "OmdbAuthenticationError",
    "OmdbCatalog",
    "OmdbClient",
    "SearchItem",
    "SearchResponse",
    "TitleResponse",
    "default_resilience",
    "raise_on_retryable_payload",
    "should_cache_payload",
    "translate_search_item",
    "translate_title",
]
