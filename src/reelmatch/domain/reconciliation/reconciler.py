"""Resolve loosely-specified candidates to authoritative catalog entries.

Resolution order:
1) look up every distinct identifier carried by the candidate
2) fall back to a title search when no identifier produced a strong match
3) rank what was found by title similarity and drop duplicate entries

A match at or above the auto-accept threshold short-circuits the remaining
lookups. Transient catalog failures propagate; callers own the retry policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from reelmatch.domain.errors import NotFoundError
from reelmatch.domain.matching import MatchThresholds, similarity
from reelmatch.domain.model import MatchCandidate, MatchSource, MatchTier

from .identifiers import candidate_identifiers

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from reelmatch.domain.model import Candidate, CatalogEntry, CatalogSearchHit, MediaType
    from reelmatch.domain.ports import CatalogService

log = getLogger(__name__)

QUIZ_AUTO_ACCEPT_THRESHOLD = 0.0


@dataclass(frozen=True, slots=True)
class ReconcilerSettings:
    """Tunables for :class:`ContentReconciler`.

    ``auto_accept_threshold`` selects the operating mode: the default ``0.95``
    asks for disambiguation on anything short of a near-exact title, while
    ``0.0`` ("quiz" mode) silently takes the first result found.
    """

    auto_accept_threshold: float = 0.95
    strong_threshold: float = 0.8
    max_search_results: int = 5

    def __post_init__(self) -> None:
        for name in ("auto_accept_threshold", "strong_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1")
        if self.max_search_results < 1:
            raise ValueError("max_search_results must be at least 1")

    @property
    def thresholds(self) -> MatchThresholds:
        return MatchThresholds(auto_accept=self.auto_accept_threshold, strong=self.strong_threshold)

    @classmethod
    def quiz(cls, *, max_search_results: int = 5) -> ReconcilerSettings:
        return cls(
            auto_accept_threshold=QUIZ_AUTO_ACCEPT_THRESHOLD,
            max_search_results=max_search_results,
        )


@dataclass(frozen=True, slots=True)
class ReconciliationOutcome:
    """Ranked matches plus the entry auto-selected from them, if any.

    ``selected is None`` with a non-empty ``matches`` list means the caller has
    to disambiguate.
    """

    matches: tuple[MatchCandidate, ...]
    selected: CatalogEntry | None

    @property
    def is_ambiguous(self) -> bool:
        return self.selected is None and bool(self.matches)


class ContentReconciler:
    def __init__(
        self,
        catalog: CatalogService,
        settings: ReconcilerSettings | None = None,
    ) -> None:
        self._catalog = catalog
        self._settings = settings or ReconcilerSettings()
        self._thresholds = self._settings.thresholds

    @property
    def settings(self) -> ReconcilerSettings:
        return self._settings

    async def resolve(
        self,
        candidate: Candidate,
        *,
        media_type: MediaType | None = None,
    ) -> list[MatchCandidate]:
        """Return matches for ``candidate`` ranked by similarity, best first.

        Raises ``NotFoundError`` when neither identifiers nor title search
        produced anything.
        """

        identifiers = candidate_identifiers(candidate)
        matches: list[MatchCandidate] = []

        for identifier in identifiers:
            entry = await self._catalog.get_by_id(identifier)
            if entry is None:
                log.info("Identifier %s for %r not found in catalog", identifier, candidate.title)
                continue
            match = self._score(candidate, entry, MatchSource.IDENTIFIER)
            if match.is_exact:
                log.debug("Identifier %s auto-accepted for %r", identifier, candidate.title)
                return [match]
            if match.low_similarity:
                log.warning(
                    "Identifier %s resolved to %r, which does not resemble %r (%.2f)",
                    identifier,
                    entry.title,
                    candidate.title,
                    match.similarity,
                )
            matches.append(match)

        if not any(match.tier is not MatchTier.WEAK for match in matches):
            hits = await self._search(candidate, media_type=media_type)
            for hit in hits[: self._settings.max_search_results]:
                entry = await self._catalog.get_by_id(hit.id)
                if entry is None:
                    log.debug("Search hit %s vanished before detail lookup", hit.id)
                    continue
                match = self._score(candidate, entry, MatchSource.TITLE_SEARCH)
                if match.is_exact:
                    return [match]
                matches.append(match)

        ranked = rank_matches(matches)
        if not ranked:
            raise NotFoundError(candidate.title, identifiers=identifiers)
        return ranked

    def select(self, matches: Sequence[MatchCandidate]) -> ReconciliationOutcome:
        """Auto-select the best match when it clears the auto-accept threshold."""

        ranked = tuple(matches)
        if ranked and ranked[0].similarity >= self._settings.auto_accept_threshold:
            return ReconciliationOutcome(matches=ranked, selected=ranked[0].entry)
        return ReconciliationOutcome(matches=ranked, selected=None)

    async def reconcile(
        self,
        candidate: Candidate,
        *,
        media_type: MediaType | None = None,
    ) -> ReconciliationOutcome:
        return self.select(await self.resolve(candidate, media_type=media_type))

    async def _search(
        self,
        candidate: Candidate,
        *,
        media_type: MediaType | None,
    ) -> list[CatalogSearchHit]:
        hits = await self._catalog.search_by_title(
            candidate.title, year=candidate.year, media_type=media_type
        )
        if hits or not candidate.year:
            return hits
        log.debug("No hits for %r in %s, retrying without year", candidate.title, candidate.year)
        return await self._catalog.search_by_title(candidate.title, media_type=media_type)

    def _score(
        self,
        candidate: Candidate,
        entry: CatalogEntry,
        source: MatchSource,
    ) -> MatchCandidate:
        score = similarity(candidate.title, entry.title)
        tier = self._thresholds.tier_for(score)
        return MatchCandidate(
            entry=entry,
            similarity=score,
            tier=tier,
            source=source,
            low_similarity=tier is MatchTier.WEAK,
        )


def rank_matches(matches: Iterable[MatchCandidate]) -> list[MatchCandidate]:
    """Sort by similarity (stable) and keep the first occurrence of each entry id."""

    ranked: list[MatchCandidate] = []
    seen: set[str] = set()
    for match in sorted(matches, key=lambda item: item.similarity, reverse=True):
        if match.entry.id in seen:
            continue
        seen.add(match.entry.id)
        ranked.append(match)
    return ranked
