"""Catalog-facing value objects: candidates, canonical entries and matches."""

from __future__ import annotations

from dataclasses import dataclass, field

from .enums import MatchSource, MatchTier, MediaType

type CatalogId = str


@dataclass(frozen=True, slots=True)
class Candidate:
    """An unresolved recommendation suggestion awaiting reconciliation."""

    title: str
    year: str | None = None
    external_id: str | None = None
    external_url: str | None = None
    reason: str | None = None

    def describe(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Canonical catalog record; every adapter translates into this shape."""

    id: CatalogId
    title: str
    year: str = ""
    media_type: MediaType = MediaType.MOVIE
    rating: str = ""
    genres: tuple[str, ...] = ()
    overview: str = ""
    vote_average: float = 0.0
    poster_url: str = ""


@dataclass(frozen=True, slots=True)
class CatalogSearchHit:
    """Summary row returned by a catalog title search."""

    id: CatalogId
    title: str
    year: str = ""
    media_type: MediaType = MediaType.MOVIE


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    entry: CatalogEntry
    similarity: float
    tier: MatchTier
    source: MatchSource = MatchSource.TITLE_SEARCH
    low_similarity: bool = field(default=False)

    @property
    def is_exact(self) -> bool:
        return self.tier is MatchTier.EXACT
