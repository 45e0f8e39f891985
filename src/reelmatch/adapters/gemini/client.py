"""Gemini ``generateContent`` adapter for the recommendation port."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from reelmatch.adapters.http_resilience import ResilientClient
from reelmatch.config.gemini import GEMINI_BASE_URL, GeminiConfig
from reelmatch.domain.errors import TransientServiceError

from .parser import parse_candidates
from .schema import (
    Content,
    ErrorResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
)

if TYPE_CHECKING:
    from types import TracebackType

    from reelmatch.config.http_resilience import ResilienceConfig
    from reelmatch.domain.model import Candidate, Preferences
    from reelmatch.domain.ports import RecommendationService

log = getLogger(__name__)

PROMPT_EXAMPLE = (
    '[{"title": "The Shawshank Redemption", "year": "1994", "type": "movie", '
    '"reason": "A powerful drama about hope and redemption.", '
    '"synopsis": "Two imprisoned men bond over a number of years."}]'
)


class GeminiAPIError(TransientServiceError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, service="gemini")
        self.status_code = status_code


def _joined(values: tuple[str, ...], fallback: str) -> str:
    return ", ".join(values) if values else fallback


def build_prompt(preferences: Preferences, *, limit: int) -> str:
    if preferences.media_type is None:
        kind = "movies or TV shows"
    else:
        kind = "movies" if preferences.media_type == "movie" else "TV shows"
    lines = [
        "I need personalized movie and TV show recommendations based on the following"
        " preferences:",
        "",
        f"- Preferred genres: {_joined(preferences.genres, 'No specific genres')}",
        f"- Current mood: {preferences.mood or 'No specific mood'}",
        f"- Available viewing time: {preferences.viewing_time_text()}",
        "- Content they've enjoyed: "
        + _joined(preferences.favorite_content, "No examples provided"),
        "- Content they want to avoid: "
        + _joined(preferences.content_to_avoid, "No examples provided"),
        f"- Age/content rating preference: {preferences.max_rating or 'No specific rating'}",
        "",
        f"Please recommend exactly {limit} {kind} that match these preferences.",
        "For each one provide the exact title as it appears in IMDb, the 4-digit release year,",
        "the content type (movie or series), a one or two sentence reason and a short synopsis.",
        "",
        "Format your response as a JSON array with title, year, type, reason and synopsis",
        f"properties. Example: {PROMPT_EXAMPLE}",
        "",
        "Make sure the titles are accurate and match real movies or TV shows.",
        "Only return the JSON array, no other text.",
    ]
    return "\n".join(lines)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class GeminiRecommender:
    """Ask Gemini for candidate titles; reconciliation happens elsewhere."""

    def __init__(
        self,
        config: GeminiConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> GeminiRecommender:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def endpoint(self) -> str:
        base_url = (self.config.resilience.base_url or GEMINI_BASE_URL).rstrip("/")
        model_path = f"models/{self.config.model_name}:generateContent"
        return f"{base_url}/{self.config.api_version}/{model_path}"

    async def suggest(self, preferences: Preferences, *, limit: int = 20) -> list[Candidate]:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        text = await self.generate(build_prompt(preferences, limit=limit))
        candidates = parse_candidates(text, limit=limit)
        if not candidates:
            raise GeminiAPIError("Gemini response contained no usable recommendations")
        log.info("Gemini suggested %d candidates", len(candidates))
        return candidates

    async def generate(self, prompt: str) -> str:
        request = GenerateContentRequest(
            contents=[Content(parts=[Part(text=prompt)])],
            generation_config=GenerationConfig(
                max_output_tokens=self.config.max_output_tokens,
                temperature=self.config.temperature,
            ),
        )
        client = self._ensure_client()
        try:
            response = await client.post(
                self.endpoint,
                params={"key": self.config.api_key},
                json=request.model_dump(by_alias=True, exclude_none=True),
            )
        except httpx.HTTPError as exc:
            log.warning("Gemini request failed: %s", exc)
            raise GeminiAPIError(f"Gemini request failed: {exc}") from exc

        if response.is_error:
            raise GeminiAPIError(_error_message(response), status_code=response.status_code)

        try:
            payload = GenerateContentResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GeminiAPIError("Malformed Gemini response payload") from exc

        text = payload.first_text()
        if text is None:
            raise GeminiAPIError("Gemini response contained no text")
        return text

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self.config.resilience)
        return self._client


def _error_message(response: httpx.Response) -> str:
    try:
        detail = ErrorResponse.model_validate(response.json()).error
    except (ValueError, ValidationError):
        return f"Gemini returned HTTP {response.status_code}"
    return f"Gemini returned HTTP {response.status_code}: {detail.message}"


if TYPE_CHECKING:

    def _recommender_check(config: GeminiConfig) -> RecommendationService:
        return GeminiRecommender(config)
