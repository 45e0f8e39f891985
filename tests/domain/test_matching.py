from __future__ import annotations

import pytest

from reelmatch.domain.matching import (
    DEFAULT_THRESHOLDS,
    MatchThresholds,
    is_suspicious_title,
    levenshtein_distance,
    normalize_title,
    similarity,
    tier_for,
)
from reelmatch.domain.model import MatchTier


def test_normalize_title_strips_punctuation_and_whitespace() -> None:
    assert normalize_title("  Spider-Man:   Into the   Spider-Verse! ") == (
        "spiderman into the spiderverse"
    )
    assert normalize_title("Ocean's Eleven") == "oceans eleven"


def test_identical_titles_after_normalisation_score_one() -> None:
    assert similarity("The Matrix", "the matrix") == 1.0
    assert similarity("Amélie", "Amélie!") == 1.0


@pytest.mark.parametrize(("first", "second"), [("", "Inception"), ("Inception", ""), ("", "")])
def test_empty_input_scores_zero(first: str, second: str) -> None:
    assert similarity(first, second) == 0.0


@pytest.mark.parametrize(
    "suspicious",
    [
        "Inception, Interstellar",
        "Inception; Tenet",
        "Inception | Tenet",
        "A" * 51,
    ],
)
def test_suspicious_titles_are_capped(suspicious: str) -> None:
    assert is_suspicious_title(suspicious)
    assert similarity(suspicious, "Inception") == 0.5
    assert similarity("Inception", suspicious) == 0.5


def test_short_title_contained_in_long_title_scores_containment() -> None:
    assert similarity("Alien", "Alien Resurrection Special Edition") == 0.7


def test_containment_requires_titles_longer_than_three_characters() -> None:
    score = similarity("Up", "Up in the Air")

    assert score != 0.7
    assert score == pytest.approx(1 - levenshtein_distance("up", "up in the air") / 13)


def test_typo_falls_back_to_levenshtein() -> None:
    assert similarity("Incepton", "Inception") == pytest.approx(1 - 1 / 9)


def test_levenshtein_distance_basics() -> None:
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


@pytest.mark.parametrize(
    ("first", "second"),
    [
        ("Inception", "Interstellar"),
        ("The Godfather", "The Godfather Part II"),
        ("Heat", "The Heat"),
        ("x", "yyyyyyyyyyyyyyyyyyyy"),
        ("Se7en", "Seven"),
    ],
)
def test_similarity_stays_within_bounds(first: str, second: str) -> None:
    score = similarity(first, second)

    assert 0.0 <= score <= 1.0
    assert score == similarity(second, first)


def test_tiers_follow_thresholds() -> None:
    assert tier_for(1.0) is MatchTier.EXACT
    assert tier_for(0.95) is MatchTier.EXACT
    assert tier_for(0.9) is MatchTier.STRONG
    assert tier_for(0.8) is MatchTier.STRONG
    assert tier_for(0.79) is MatchTier.WEAK
    assert DEFAULT_THRESHOLDS == MatchThresholds(auto_accept=0.95, strong=0.8)


def test_custom_thresholds() -> None:
    lenient = MatchThresholds(auto_accept=0.7, strong=0.5)

    assert tier_for(0.75, lenient) is MatchTier.EXACT
    assert tier_for(0.6, lenient) is MatchTier.STRONG
    assert tier_for(0.4, lenient) is MatchTier.WEAK
