"""Public domain model surface."""

from __future__ import annotations

from reelmatch.domain.model.catalog import (
    Candidate,
    CatalogEntry,
    CatalogId,
    CatalogSearchHit,
    MatchCandidate,
)
from reelmatch.domain.model.enums import MatchSource, MatchTier, MediaType, RatingScale, RunState
from reelmatch.domain.model.ingest import BatchJob, ProcessingStatus
from reelmatch.domain.model.preferences import Preferences

__all__ = [
    "BatchJob",
    "Candidate",
    "CatalogEntry",
    "CatalogId",
    "CatalogSearchHit",
    "MatchCandidate",
    "MatchSource",
    "MatchTier",
    "MediaType",
    "Preferences",
    "ProcessingStatus",
    "RatingScale",
    "RunState",
]
