"""Pydantic models describing the OMDb API payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

NOT_AVAILABLE = "N/A"


def _not_available_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or stripped == NOT_AVAILABLE:
            return None
        return stripped
    return value


class OmdbBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class OmdbResponse(OmdbBaseModel):
    response: Literal["True", "False"] = Field(alias="Response")
    error: str | None = Field(default=None, alias="Error")

    @property
    def ok(self) -> bool:
        return self.response == "True"


class SearchItem(OmdbBaseModel):
    title: str = Field(alias="Title")
    year: str | None = Field(default=None, alias="Year")
    imdb_id: str = Field(alias="imdbID")
    type: str | None = Field(default=None, alias="Type")
    poster: str | None = Field(default=None, alias="Poster")

    _normalize_optional = field_validator("year", "type", "poster", mode="before")(
        _not_available_to_none
    )


class SearchResponse(OmdbResponse):
    search: list[SearchItem] = Field(default_factory=list[SearchItem], alias="Search")
    total_results: int | None = Field(default=None, alias="totalResults")


class TitleResponse(OmdbResponse):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str | None = Field(default=None, alias="Title")
    year: str | None = Field(default=None, alias="Year")
    rated: str | None = Field(default=None, alias="Rated")
    genre: str | None = Field(default=None, alias="Genre")
    plot: str | None = Field(default=None, alias="Plot")
    poster: str | None = Field(default=None, alias="Poster")
    type: str | None = Field(default=None, alias="Type")
    imdb_id: str | None = Field(default=None, alias="imdbID")
    imdb_rating: str | None = Field(default=None, alias="imdbRating")

    _normalize_optional = field_validator(
        "title",
        "year",
        "rated",
        "genre",
        "plot",
        "poster",
        "type",
        "imdb_id",
        "imdb_rating",
        mode="before",
    )(_not_available_to_none)
