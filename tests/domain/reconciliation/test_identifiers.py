from __future__ import annotations

import pytest

from reelmatch.domain.model import Candidate
from reelmatch.domain.reconciliation import candidate_identifiers, identifier_from_url


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.imdb.com/title/tt1375666/", "tt1375666"),
        ("https://m.imdb.com/title/tt0816692/?ref_=nv_sr_1", "tt0816692"),
        ("imdb.com/title/tt0133093", "tt0133093"),
        ("https://www.imdb.com/name/nm0634240/", None),
        ("", None),
        (None, None),
    ],
)
def test_identifier_from_url(url: str | None, expected: str | None) -> None:
    assert identifier_from_url(url) == expected


def test_explicit_identifier_comes_first() -> None:
    candidate = Candidate(
        title="Inception",
        external_id="tt1375666",
        external_url="https://www.imdb.com/title/tt0816692/",
    )

    assert candidate_identifiers(candidate) == ("tt1375666", "tt0816692")


def test_identifiers_are_stripped_and_deduplicated() -> None:
    candidate = Candidate(
        title="Inception",
        external_id=" tt1375666 ",
        external_url="https://www.imdb.com/title/tt1375666/",
    )

    assert candidate_identifiers(candidate) == ("tt1375666",)


def test_candidate_without_identifiers() -> None:
    assert candidate_identifiers(Candidate(title="Inception", external_id="  ")) == ()
