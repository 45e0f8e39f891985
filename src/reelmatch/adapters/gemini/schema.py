"""Pydantic models for Gemini ``generateContent`` payloads and model output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeminiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Part(GeminiBaseModel):
    text: str = ""


class Content(GeminiBaseModel):
    parts: list[Part] = Field(default_factory=list[Part])
    role: str | None = None


class GenerationConfig(GeminiBaseModel):
    max_output_tokens: int = Field(alias="maxOutputTokens")
    temperature: float


class GenerateContentRequest(GeminiBaseModel):
    contents: list[Content]
    generation_config: GenerationConfig = Field(alias="generationConfig")


class ResponseCandidate(GeminiBaseModel):
    content: Content | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")


class GenerateContentResponse(GeminiBaseModel):
    candidates: list[ResponseCandidate] = Field(default_factory=list[ResponseCandidate])

    def first_text(self) -> str | None:
        for candidate in self.candidates:
            if candidate.content is None:
                continue
            text = "".join(part.text for part in candidate.content.parts)
            if text.strip():
                return text
        return None


class ErrorDetail(GeminiBaseModel):
    code: int | None = None
    message: str = ""
    status: str | None = None


class ErrorResponse(GeminiBaseModel):
    error: ErrorDetail


class RecommendationItem(GeminiBaseModel):
    """One suggestion as emitted by the model; every field but ``title`` is optional."""

    title: str
    year: str | None = None
    type: str | None = None
    reason: str | None = None
    synopsis: str | None = None
    imdb_id: str | None = None

    @field_validator("title")
    @classmethod
    def _require_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("imdb_id", "reason", "synopsis", "type", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value
