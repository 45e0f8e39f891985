"""Per-item work units run by the batch orchestrator."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from reelmatch.domain.errors import NotFoundError
from reelmatch.domain.reconciliation import candidate_identifiers

if TYPE_CHECKING:
    from reelmatch.domain.model import Candidate, CatalogEntry, MediaType
    from reelmatch.domain.ports import CatalogService
    from reelmatch.domain.reconciliation import ContentReconciler

log = getLogger(__name__)


class ItemProcessor(Protocol):
    """Resolve one candidate to a catalog entry.

    Raises ``NotFoundError`` for a definitive miss and
    ``TransientServiceError`` for failures worth another attempt.
    """

    async def __call__(self, candidate: Candidate) -> CatalogEntry: ...


class ReconcileItemProcessor:
    """Full reconciliation; the best-ranked match wins."""

    def __init__(self, reconciler: ContentReconciler, *, media_type: MediaType | None = None):
        self._reconciler = reconciler
        self._media_type = media_type

    async def __call__(self, candidate: Candidate) -> CatalogEntry:
        matches = await self._reconciler.resolve(candidate, media_type=self._media_type)
        best = matches[0]
        if best.low_similarity:
            log.info(
                "Accepting low-similarity match %r for %r (%.2f)",
                best.entry.title,
                candidate.title,
                best.similarity,
            )
        return best.entry


class FetchByIdProcessor:
    """Fetch entries directly by identifier, without title matching.

    Used for catalog imports where every row already carries an id.
    """

    def __init__(self, catalog: CatalogService):
        self._catalog = catalog

    async def __call__(self, candidate: Candidate) -> CatalogEntry:
        identifiers = candidate_identifiers(candidate)
        for identifier in identifiers:
            entry = await self._catalog.get_by_id(identifier)
            if entry is not None:
                return entry
        raise NotFoundError(candidate.title, identifiers=identifiers)
