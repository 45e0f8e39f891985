"""Tolerant extraction of recommendation lists from free-form model text.

Models wrap the requested JSON array in prose or markdown fences, truncate it
mid-object, or return a ``{"recommendations": [...]}`` object instead. The
parser tries, in order: the outermost JSON array, a wrapping object, and
finally every balanced ``{...}`` object found in the text.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from logging import getLogger
from typing import cast

from pydantic import ValidationError

from reelmatch.domain.model import Candidate

from .schema import RecommendationItem

log = getLogger(__name__)

_ARRAY = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)
_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def extract_recommendations(text: str) -> list[RecommendationItem]:
    cleaned = _FENCE.sub("", text).strip()
    for raw_items in (_from_array(cleaned), _from_object(cleaned), _from_fragments(cleaned)):
        if raw_items:
            items = _validate_items(raw_items)
            if items:
                return items
    log.warning("No recommendations found in model output (%d chars)", len(text))
    return []


def to_candidate(item: RecommendationItem) -> Candidate:
    return Candidate(
        title=item.title,
        year=item.year,
        external_id=item.imdb_id,
        reason=item.reason,
    )


def parse_candidates(text: str, *, limit: int | None = None) -> list[Candidate]:
    candidates = [to_candidate(item) for item in extract_recommendations(text)]
    return candidates[:limit] if limit is not None else candidates


def _loads(fragment: str) -> object | None:
    try:
        return json.loads(fragment)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(fragment.replace("\\'", "'"), strict=False)
    except json.JSONDecodeError:
        return None


def _from_array(text: str) -> list[object]:
    match = _ARRAY.search(text)
    if match is None:
        return []
    parsed = _loads(match.group(0))
    return cast(list[object], parsed) if isinstance(parsed, list) else []


def _from_object(text: str) -> list[object]:
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return []
    parsed = _loads(text[start : end + 1])
    if isinstance(parsed, Mapping):
        recommendations = cast(Mapping[str, object], parsed).get("recommendations")
        if isinstance(recommendations, list):
            return cast(list[object], recommendations)
    return []


def _from_fragments(text: str) -> list[object]:
    """Parse every top-level balanced ``{...}`` object, ignoring broken ones."""

    fragments: list[object] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                parsed = _loads(text[start : index + 1])
                if parsed is not None:
                    fragments.append(parsed)
    return fragments


def _validate_items(raw_items: list[object]) -> list[RecommendationItem]:
    items: list[RecommendationItem] = []
    for raw in raw_items:
        try:
            items.append(RecommendationItem.model_validate(raw))
        except ValidationError:
            log.debug("Skipping malformed recommendation %r", raw)
    return items
