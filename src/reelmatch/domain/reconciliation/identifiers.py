"""Extraction of catalog identifiers from loosely-specified candidates."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reelmatch.domain.model import Candidate

_TITLE_URL_ID = re.compile(r"/title/(tt\d+)")


def identifier_from_url(url: str | None) -> str | None:
    """Return the ``tt…`` identifier embedded in a catalog title URL, if any."""

    if not url:
        return None
    match = _TITLE_URL_ID.search(url)
    if match is None:
        return None
    return match.group(1)


def candidate_identifiers(candidate: Candidate) -> tuple[str, ...]:
    """Distinct identifiers for ``candidate``, explicit id first, then the URL id."""

    identifiers: list[str] = []
    for value in (candidate.external_id, identifier_from_url(candidate.external_url)):
        if not value:
            continue
        value = value.strip()
        if value and value not in identifiers:
            identifiers.append(value)
    return tuple(identifiers)
