"""HTTP client for the OMDb API."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from reelmatch.adapters.http_resilience import ResilientClient, RetryablePayloadError
from reelmatch.config.omdb import OMDB_BASE_URL, OmdbConfig, default_omdb_resilience
from reelmatch.domain.errors import ReelmatchError, TransientServiceError

from .schema import SearchItem, SearchResponse, TitleResponse

if TYPE_CHECKING:
    from types import TracebackType

    from reelmatch.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

NOT_FOUND_ERRORS = frozenset(
    {"Movie not found!", "Series not found!", "Incorrect IMDb ID.", "Too many results."}
)
RETRYABLE_ERRORS = frozenset({"Request limit reached!"})


class OmdbAPIError(TransientServiceError):
    """Raised when an OMDb call fails in a way that may succeed on retry."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, service="omdb")
        self.status_code = status_code


class OmdbAuthenticationError(ReelmatchError):
    """Raised when OMDb rejects the configured API key."""


def _payload_error(payload: object) -> str | None:
    if isinstance(payload, dict) and payload.get("Response") == "False":
        error = payload.get("Error")
        return error if isinstance(error, str) else "Unknown OMDb error"
    return None


def _safe_json(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return None


async def raise_on_retryable_payload(response: httpx.Response) -> None:
    """Response hook turning OMDb rate-limit payloads into retryable errors.

    OMDb reports an exhausted quota in the JSON body, with either HTTP 200 or 401.
    """

    await response.aread()
    error = _payload_error(_safe_json(response))
    if error in RETRYABLE_ERRORS:
        raise RetryablePayloadError(f"OMDb: {error}", response=response)


def should_cache_payload(payload: object) -> bool:
    return _payload_error(payload) not in RETRYABLE_ERRORS


def default_resilience() -> ResilienceConfig:
    return default_omdb_resilience(
        response_hooks=(raise_on_retryable_payload,),
        should_cache=should_cache_payload,
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class OmdbClient:
    """Thin typed wrapper around the two OMDb endpoints reelmatch uses.

    ``search`` and ``get_title`` return ``[]`` / ``None`` for OMDb's "not
    found" answers; transport failures, 5xx responses and rate limiting raise
    :class:`OmdbAPIError`.
    """

    def __init__(
        self,
        config: OmdbConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> OmdbClient:
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

    async def search(
        self,
        query: str,
        *,
        year: str | None = None,
        media_type: str | None = None,
    ) -> list[SearchItem]:
        params: dict[str, str] = {"s": query}
        if year:
            params["y"] = year
        if media_type:
            params["type"] = media_type

        payload = await self._request(params)
        if _payload_error(payload) in NOT_FOUND_ERRORS:
            return []
        response = self._validate(SearchResponse, payload)
        if not response.ok:
            raise OmdbAPIError(f"OMDb search failed: {response.error}")
        return response.search

    async def get_title(self, imdb_id: str) -> TitleResponse | None:
        payload = await self._request({"i": imdb_id, "plot": "short"})
        if _payload_error(payload) in NOT_FOUND_ERRORS:
            return None
        response = self._validate(TitleResponse, payload)
        if not response.ok:
            raise OmdbAPIError(f"OMDb lookup failed for {imdb_id}: {response.error}")
        return response

    async def _request(self, params: dict[str, str]) -> dict[str, object]:
        client = self._ensure_client()
        base_url = self.config.resilience.base_url or OMDB_BASE_URL
        query = httpx.QueryParams({**params, "apikey": self.config.api_key})
        try:
            response = await client.get(base_url, params=query)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == httpx.codes.UNAUTHORIZED:
                if _payload_error(_safe_json(exc.response)) in RETRYABLE_ERRORS:
                    raise OmdbAPIError("OMDb request limit reached", status_code=status) from exc
                raise OmdbAuthenticationError("OMDb rejected the configured API key") from exc
            if status == httpx.codes.NOT_FOUND:
                return {"Response": "False", "Error": "Movie not found!"}
            raise OmdbAPIError(f"OMDb returned HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            log.warning("OMDb request failed: %s", exc)
            raise OmdbAPIError(f"OMDb request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise OmdbAPIError("OMDb returned a non-JSON payload") from exc
        if not isinstance(payload, dict):
            raise OmdbAPIError("Unexpected OMDb response payload")
        return payload

    @staticmethod
    def _validate[TModel: (SearchResponse, TitleResponse)](
        model: type[TModel], payload: dict[str, object]
    ) -> TModel:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise OmdbAPIError(f"Malformed OMDb payload: {exc.error_count()} errors") from exc

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self.config.resilience)
        return self._client
