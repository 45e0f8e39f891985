"""Load recommendation candidates from JSON array or JSON-lines files."""

from __future__ import annotations

import json
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from reelmatch.domain.model import Candidate

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)


class CandidateFileError(ValueError):
    """Raised when a candidate file cannot be parsed."""


class CandidateRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    year: str | None = None
    external_id: str | None = Field(
        default=None, validation_alias=AliasChoices("external_id", "imdb_id", "imdbID", "id")
    )
    external_url: str | None = Field(
        default=None, validation_alias=AliasChoices("external_url", "url", "imdb_url")
    )
    reason: str | None = None

    @field_validator("title")
    @classmethod
    def _require_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped

    @field_validator("year", "external_id", "external_url", "reason", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    def to_candidate(self) -> Candidate:
        return Candidate(
            title=self.title,
            year=self.year,
            external_id=self.external_id,
            external_url=self.external_url,
            reason=self.reason,
        )


def parse_candidates_text(text: str) -> list[Candidate]:
    """Parse a JSON array of candidate objects, or one object per line."""

    stripped = text.strip()
    if not stripped:
        return []
    if stripped.startswith("["):
        try:
            raw = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise CandidateFileError(f"Invalid JSON array: {exc}") from exc
        if not isinstance(raw, list):
            raise CandidateFileError("Expected a JSON array of candidates")
        return _to_candidates(enumerate(raw, start=1))
    return _to_candidates(_json_lines(stripped))


def load_candidates(path: str | Path) -> list[Candidate]:
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CandidateFileError(f"Cannot read {file_path}: {exc}") from exc
    candidates = parse_candidates_text(text)
    log.info("Loaded %d candidates from %s", len(candidates), file_path)
    return candidates


def _json_lines(text: str) -> Iterable[tuple[int, object]]:
    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            yield number, json.loads(line)
        except json.JSONDecodeError as exc:
            raise CandidateFileError(f"Line {number}: invalid JSON ({exc.msg})") from exc


def _to_candidates(rows: Iterable[tuple[int, object]]) -> list[Candidate]:
    candidates: list[Candidate] = []
    for number, row in rows:
        try:
            candidates.append(CandidateRecord.model_validate(row).to_candidate())
        except ValidationError as exc:
            raise CandidateFileError(f"Entry {number}: {exc.errors()[0]['msg']}") from exc
    return candidates
