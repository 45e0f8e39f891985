from __future__ import annotations

import pytest

from reelmatch.adapters.omdb import (
    SearchItem,
    TitleResponse,
    translate_search_item,
    translate_title,
)
from reelmatch.adapters.omdb.translator import (
    media_type_from_omdb,
    media_type_to_omdb,
    parse_genres,
    parse_score,
    parse_year,
)
from reelmatch.domain.model import MediaType


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("2010", "2010"), ("2008–2013", "2008"), ("2019–", "2019"), (None, ""), ("N/A", "")],
)
def test_parse_year(raw: str | None, expected: str) -> None:
    assert parse_year(raw) == expected


def test_parse_genres_and_score() -> None:
    assert parse_genres("Action, Sci-Fi ,") == ("Action", "Sci-Fi")
    assert parse_genres(None) == ()
    assert parse_score("8.8") == 8.8
    assert parse_score("N/A") == 0.0
    assert parse_score(None) == 0.0


def test_media_type_mapping() -> None:
    assert media_type_from_omdb("series") is MediaType.SERIES
    assert media_type_from_omdb("episode") is MediaType.SERIES
    assert media_type_from_omdb("movie") is MediaType.MOVIE
    assert media_type_from_omdb(None) is MediaType.MOVIE
    assert media_type_to_omdb(MediaType.SERIES) == "series"
    assert media_type_to_omdb(MediaType.MOVIE) == "movie"


def test_translate_title_normalises_placeholders() -> None:
    payload = TitleResponse.model_validate(
        {
            "Title": "Inception",
            "Year": "2010",
            "Rated": "N/A",
            "Genre": "Action, Adventure, Sci-Fi",
            "Plot": "N/A",
            "Poster": "https://example.com/poster.jpg",
            "Type": "movie",
            "imdbID": "tt1375666",
            "imdbRating": "8.8",
            "Metascore": "74",
            "Response": "True",
        }
    )

    entry = translate_title(payload)

    assert entry.id == "tt1375666"
    assert entry.rating == ""
    assert entry.overview == ""
    assert entry.genres == ("Action", "Adventure", "Sci-Fi")
    assert entry.media_type is MediaType.MOVIE
    assert entry.poster_url == "https://example.com/poster.jpg"


def test_translate_title_requires_identifier() -> None:
    payload = TitleResponse.model_validate({"Title": "Orphan", "Response": "True"})

    with pytest.raises(ValueError, match="imdbID"):
        translate_title(payload)


def test_translate_search_item() -> None:
    item = SearchItem.model_validate(
        {"Title": "Sherlock", "Year": "2010–2017", "imdbID": "tt1475582", "Type": "series"}
    )

    hit = translate_search_item(item)

    assert (hit.id, hit.title, hit.year, hit.media_type) == (
        "tt1475582",
        "Sherlock",
        "2010",
        MediaType.SERIES,
    )
