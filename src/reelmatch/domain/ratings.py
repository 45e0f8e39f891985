"""Maturity rating equivalence across the film and series classification scales.

A viewer states the most permissive rating they accept (the *ceiling*). The
ceiling expands to every admissible rating on its own scale plus a
hand-authored approximation on the other scale, so a series ceiling can still
filter films and vice versa.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from reelmatch.domain.model import RatingScale

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from reelmatch.domain.model import CatalogEntry

FILM_RATINGS: Final[tuple[str, ...]] = ("G", "PG", "PG-13", "R")
SERIES_RATINGS: Final[tuple[str, ...]] = ("TV-Y", "TV-PG", "TV-14", "TV-MA")
ALL_RATINGS: Final[frozenset[str]] = frozenset((*FILM_RATINGS, *SERIES_RATINGS))

DEFAULT_ADMISSIBLE: Final[frozenset[str]] = frozenset(
    {"G", "PG", "PG-13", "TV-Y", "TV-PG", "TV-14"}
)

# Both scales are ordered so that equal indexes are treated as equivalent
# (G ~ TV-Y, PG ~ TV-PG, PG-13 ~ TV-14, R ~ TV-MA).
_EQUIVALENT_ON_OTHER_SCALE: Final[Mapping[str, str]] = MappingProxyType(
    {
        **dict(zip(FILM_RATINGS, SERIES_RATINGS, strict=True)),
        **dict(zip(SERIES_RATINGS, FILM_RATINGS, strict=True)),
    }
)


def normalize_rating(value: str | None) -> str | None:
    """Return the canonical token for ``value`` or ``None`` if it is not one of the eight."""

    if not value:
        return None
    token = value.strip().upper()
    return token if token in ALL_RATINGS else None


def scale_of(rating: str) -> RatingScale | None:
    token = normalize_rating(rating)
    if token is None:
        return None
    return RatingScale.FILM if token in FILM_RATINGS else RatingScale.SERIES


def _build_equivalence_table() -> Mapping[str, frozenset[str]]:
    table: dict[str, frozenset[str]] = {}
    for scale in (FILM_RATINGS, SERIES_RATINGS):
        for index, ceiling in enumerate(scale):
            same_scale = scale[: index + 1]
            other_scale = tuple(_EQUIVALENT_ON_OTHER_SCALE[rating] for rating in same_scale)
            table[ceiling] = frozenset((*same_scale, *other_scale))
    return MappingProxyType(table)


EQUIVALENCE_TABLE: Final[Mapping[str, frozenset[str]]] = _build_equivalence_table()


def ratings_up_to(ceiling: str | None) -> frozenset[str]:
    """Expand ``ceiling`` to the full admissible rating set.

    Empty or unrecognised ceilings fall back to :data:`DEFAULT_ADMISSIBLE`.
    """

    token = normalize_rating(ceiling)
    if token is None:
        return DEFAULT_ADMISSIBLE
    return EQUIVALENCE_TABLE[token]


def is_admissible(rating: str | None, ceiling: str | None) -> bool:
    token = normalize_rating(rating)
    if token is None:
        return False
    return token in ratings_up_to(ceiling)


def filter_by_rating(
    entries: Iterable[CatalogEntry],
    ceiling: str | None,
) -> list[CatalogEntry]:
    """Keep entries whose rating is admissible under ``ceiling``.

    ``ceiling=None`` disables filtering entirely; entries with ratings outside
    the two scales (``Not Rated``, ``Unrated``, ``N/A``) are dropped whenever a
    ceiling is set.
    """

    if ceiling is None:
        return list(entries)
    admissible = ratings_up_to(ceiling)
    return [entry for entry in entries if normalize_rating(entry.rating) in admissible]
