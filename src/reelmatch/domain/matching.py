"""Title similarity scoring used to judge catalog matches."""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import Final

from reelmatch.domain.model import MatchTier

log = getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

LIST_SEPARATORS: Final[tuple[str, ...]] = (",", ";", "|")
MAX_TITLE_LENGTH: Final[int] = 50
SUSPICIOUS_SCORE: Final[float] = 0.5
CONTAINMENT_SCORE: Final[float] = 0.7
CONTAINMENT_LENGTH_RATIO: Final[float] = 0.7
CONTAINMENT_MIN_LENGTH: Final[int] = 3


@dataclass(frozen=True, slots=True)
class MatchThresholds:
    """Similarity cut-offs for the exact / strong / weak tiers."""

    auto_accept: float = 0.95
    strong: float = 0.8

    def tier_for(self, score: float) -> MatchTier:
        if score >= self.auto_accept:
            return MatchTier.EXACT
        if score >= self.strong:
            return MatchTier.STRONG
        return MatchTier.WEAK


DEFAULT_THRESHOLDS: Final[MatchThresholds] = MatchThresholds()


def normalize_title(title: str) -> str:
    lowered = _NON_WORD.sub("", title.lower()).replace("_", "")
    return _WHITESPACE.sub(" ", lowered).strip()


def is_suspicious_title(title: str) -> bool:
    """Whether ``title`` looks like a list or a description rather than one title."""

    return len(title) > MAX_TITLE_LENGTH or any(sep in title for sep in LIST_SEPARATORS)


def levenshtein_distance(first: str, second: str) -> int:
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i]
        for j, right in enumerate(second, start=1):
            cost = 0 if left == right else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def similarity(first: str, second: str) -> float:
    """Score how likely ``first`` and ``second`` name the same title, in ``[0, 1]``.

    Identical titles after normalisation score ``1.0``. Inputs that look like
    several titles glued together (list separators, or more than 50 characters)
    are capped at ``0.5``. A short title contained in a much longer one scores
    ``0.7``. Everything else falls back to normalised Levenshtein similarity.
    """

    if not first or not second:
        return 0.0

    left = normalize_title(first)
    right = normalize_title(second)
    if left == right:
        return 1.0

    if is_suspicious_title(first) or is_suspicious_title(second):
        log.debug("Suspicious title pair %r / %r, capping similarity", first, second)
        return SUSPICIOUS_SCORE

    shorter, longer = sorted((left, right), key=len)
    if len(shorter) > CONTAINMENT_MIN_LENGTH and shorter in longer:
        if len(shorter) / len(longer) < CONTAINMENT_LENGTH_RATIO:
            return CONTAINMENT_SCORE

    longest = max(len(left), len(right))
    if longest == 0:
        return 0.0
    return 1.0 - levenshtein_distance(left, right) / longest


def tier_for(score: float, thresholds: MatchThresholds = DEFAULT_THRESHOLDS) -> MatchTier:
    return thresholds.tier_for(score)
