"""Port for the authoritative catalog lookup service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reelmatch.domain.model import CatalogEntry, CatalogSearchHit, MediaType


@runtime_checkable
class CatalogService(Protocol):
    """Async catalog lookups.

    Implementations return ``None`` / an empty list for a definitive "not
    found" and raise ``TransientServiceError`` for failures worth retrying
    (network, timeouts, rate limiting, malformed payloads).
    """

    async def search_by_title(
        self,
        query: str,
        *,
        year: str | None = None,
        media_type: MediaType | None = None,
    ) -> list[CatalogSearchHit]: ...

    async def get_by_id(self, catalog_id: str) -> CatalogEntry | None: ...


__all__ = ["CatalogService"]
