"""Public interface for the Gemini recommendation adapter."""

from __future__ import annotations

from .client import GeminiAPIError, GeminiRecommender, build_prompt
from .parser import extract_recommendations, parse_candidates
from .schema import GenerateContentResponse, RecommendationItem

__all__ = [
    "GeminiAPIError",
    "GeminiRecommender",
    "GenerateContentResponse",
    "RecommendationItem",
    "build_prompt",
    "extract_recommendations",
    "parse_candidates",
]
