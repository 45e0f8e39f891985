from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from reelmatch.adapters.gemini import GeminiAPIError, GeminiRecommender, build_prompt
from reelmatch.adapters.http_resilience import ResilientClient
from reelmatch.config.gemini import GEMINI_BASE_URL, GeminiConfig
from reelmatch.config.http_resilience import CacheConfig, ResilienceConfig
from reelmatch.domain.model import MediaType, Preferences

RECOMMENDATIONS = (
    '```json\n[{"title": "Arrival", "year": "2016", "type": "movie", '
    '"reason": "Quiet, cerebral sci-fi"}, {"title": "Contact", "year": "1997"}]\n```'
)


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _recommender(handler: Callable[[httpx.Request], httpx.Response]) -> GeminiRecommender:
    config = GeminiConfig(
        api_key="gemini-key",
        model_name="gemini-1.5-flash",
        api_version="v1beta",
        resilience=ResilienceConfig(
            name="gemini", base_url=GEMINI_BASE_URL, cache=CacheConfig(enabled=False)
        ),
    )
    return GeminiRecommender(config, client_factory=_make_client_factory(handler))


def _text_response(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]},
    )


def test_suggest_posts_prompt_and_parses_candidates() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _text_response(RECOMMENDATIONS)

    async def scenario() -> list[str]:
        async with _recommender(handler) as recommender:
            candidates = await recommender.suggest(Preferences(genres=("Sci-Fi",)), limit=5)
        return [candidate.title for candidate in candidates]

    assert asyncio.run(scenario()) == ["Arrival", "Contact"]

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert request.url.params["key"] == "gemini-key"
    body = json.loads(request.content)
    assert body["generationConfig"] == {"maxOutputTokens": 4096, "temperature": 0.7}
    prompt = body["contents"][0]["parts"][0]["text"]
    assert "Preferred genres: Sci-Fi" in prompt
    assert "exactly 5 movies or TV shows" in prompt


def test_suggest_truncates_to_limit() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return _text_response(RECOMMENDATIONS)

    candidates = asyncio.run(_recommender(handler).suggest(Preferences(), limit=1))

    assert [candidate.title for candidate in candidates] == ["Arrival"]


def test_suggest_rejects_unusable_output() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return _text_response("I could not think of anything.")

    with pytest.raises(GeminiAPIError, match="no usable recommendations"):
        asyncio.run(_recommender(handler).suggest(Preferences()))


def test_suggest_requires_positive_limit() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        raise AssertionError("no request expected")

    with pytest.raises(ValueError, match="limit"):
        asyncio.run(_recommender(handler).suggest(Preferences(), limit=0))


def test_error_status_carries_service_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(
            429,
            json={
                "error": {
                    "code": 429,
                    "message": "Quota exceeded",
                    "status": "RESOURCE_EXHAUSTED",
                }
            },
        )

    with pytest.raises(GeminiAPIError, match="Quota exceeded") as exc:
        asyncio.run(_recommender(handler).generate("hello"))

    assert exc.value.status_code == 429
    assert exc.value.service == "gemini"


def test_empty_candidates_raise() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(200, json={"candidates": []})

    with pytest.raises(GeminiAPIError, match="no text"):
        asyncio.run(_recommender(handler).generate("hello"))


def test_transport_failure_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GeminiAPIError, match="timed out"):
        asyncio.run(_recommender(handler).generate("hello"))


def test_prompt_reflects_preferences() -> None:
    preferences = Preferences(
        genres=("Comedy", "Animation"),
        mood="cheerful",
        favorite_content=("Paddington 2",),
        viewing_time_minutes=90,
        max_rating="PG",
        media_type=MediaType.MOVIE,
    )

    prompt = build_prompt(preferences, limit=3)

    assert "Preferred genres: Comedy, Animation" in prompt
    assert "Current mood: cheerful" in prompt
    assert "Content they've enjoyed: Paddington 2" in prompt
    assert "Content they want to avoid: No examples provided" in prompt
    assert "Available viewing time: 1 hour 30 minutes" in prompt
    assert "Age/content rating preference: PG" in prompt
    assert "exactly 3 movies that match" in prompt
