"""Translate OMDb payloads into canonical catalog entries.

This is the only place OMDb's conventions leak through: ``"N/A"`` placeholders,
comma-joined genres, string ratings and year ranges for series.
"""

from __future__ import annotations

import re
from logging import getLogger

from reelmatch.domain.model import CatalogEntry, CatalogSearchHit, MediaType

from .schema import SearchItem, TitleResponse

log = getLogger(__name__)

_YEAR = re.compile(r"\d{4}")
_SERIES_TYPES = frozenset({"series", "episode"})


def media_type_from_omdb(value: str | None) -> MediaType:
    if value and value.lower() in _SERIES_TYPES:
        return MediaType.SERIES
    return MediaType.MOVIE


def media_type_to_omdb(media_type: MediaType) -> str:
    return "series" if media_type is MediaType.SERIES else "movie"


def parse_year(value: str | None) -> str:
    """First four-digit year in ``value`` (``"2008–2013"`` -> ``"2008"``), else ``""``."""

    if not value:
        return ""
    match = _YEAR.search(value)
    return match.group(0) if match else ""


def parse_genres(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(genre.strip() for genre in value.split(",") if genre.strip())


def parse_score(value: str | None) -> float:
    if not value:
        return 0.0
    try:
        return float(value.replace(",", ""))
    except ValueError:
        log.debug("Ignoring unparseable imdbRating %r", value)
        return 0.0


def translate_title(payload: TitleResponse) -> CatalogEntry:
    if payload.imdb_id is None or payload.title is None:
        raise ValueError("OMDb title payload is missing imdbID or Title")
    return CatalogEntry(
        id=payload.imdb_id,
        title=payload.title,
        year=parse_year(payload.year),
        media_type=media_type_from_omdb(payload.type),
        rating=payload.rated or "",
        genres=parse_genres(payload.genre),
        overview=payload.plot or "",
        vote_average=parse_score(payload.imdb_rating),
        poster_url=payload.poster or "",
    )


def translate_search_item(item: SearchItem) -> CatalogSearchHit:
    return CatalogSearchHit(
        id=item.imdb_id,
        title=item.title,
        year=parse_year(item.year),
        media_type=media_type_from_omdb(item.type),
    )
