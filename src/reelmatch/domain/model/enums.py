"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class MediaType(StrEnum):
    MOVIE = "movie"
    SERIES = "series"


class MatchTier(StrEnum):
    """Confidence classification of a title match."""

    EXACT = "exact"
    STRONG = "strong"
    WEAK = "weak"


class MatchSource(StrEnum):
    """How a match was discovered during reconciliation."""

    IDENTIFIER = "identifier"
    TITLE_SEARCH = "title_search"


class RatingScale(StrEnum):
    FILM = "film"
    SERIES = "series"


class RunState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self not in {RunState.IDLE, RunState.RUNNING}
