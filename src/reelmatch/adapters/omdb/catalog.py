"""OMDb-backed implementation of the catalog port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .client import OmdbAPIError, OmdbClient
from .translator import media_type_to_omdb, translate_search_item, translate_title

if TYPE_CHECKING:
    from types import TracebackType

    from reelmatch.domain.model import CatalogEntry, CatalogSearchHit, MediaType
    from reelmatch.domain.ports import CatalogService

log = getLogger(__name__)


class OmdbCatalog:
    def __init__(self, client: OmdbClient) -> None:
        self._client = client

    async def __aenter__(self) -> OmdbCatalog:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._client.aclose()

    async def search_by_title(
        self,
        query: str,
        *,
        year: str | None = None,
        media_type: MediaType | None = None,
    ) -> list[CatalogSearchHit]:
        items = await self._client.search(
            query,
            year=year,
            media_type=media_type_to_omdb(media_type) if media_type else None,
        )
        hits = [translate_search_item(item) for item in items]
        log.debug("OMDb search %r (%s) -> %d hits", query, year or "any year", len(hits))
        return hits

    async def get_by_id(self, catalog_id: str) -> CatalogEntry | None:
        payload = await self._client.get_title(catalog_id)
        if payload is None:
            return None
        try:
            return translate_title(payload)
        except ValueError as exc:
            raise OmdbAPIError(f"Incomplete OMDb record for {catalog_id}") from exc


if TYPE_CHECKING:

    def _catalog_check(client: OmdbClient) -> CatalogService:
        return OmdbCatalog(client)
