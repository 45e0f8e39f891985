"""Port for the generative recommendation service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reelmatch.domain.model import Candidate, Preferences


@runtime_checkable
class RecommendationService(Protocol):
    """Suggest candidate titles for a set of viewer preferences.

    Called once per user-facing request; it sits outside the batch/retry
    machinery of the ingestion pipeline.
    """

    async def suggest(self, preferences: Preferences, *, limit: int = 20) -> list[Candidate]: ...


__all__ = ["RecommendationService"]
