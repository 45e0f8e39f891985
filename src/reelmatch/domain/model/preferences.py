"""Viewer preferences collected by the quiz and passed explicitly to services."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import MediaType


@dataclass(frozen=True, slots=True)
class Preferences:
    genres: tuple[str, ...] = ()
    mood: str | None = None
    favorite_content: tuple[str, ...] = ()
    content_to_avoid: tuple[str, ...] = ()
    viewing_time_minutes: int | None = None
    max_rating: str | None = None
    media_type: MediaType | None = None

    def viewing_time_text(self) -> str:
        minutes = self.viewing_time_minutes
        if not minutes:
            return "No specific time limit"
        if minutes < 60:
            return f"{minutes} minutes"
        hours, rest = divmod(minutes, 60)
        text = f"{hours} hour{'s' if hours > 1 else ''}"
        if rest:
            text += f" {rest} minutes"
        return text
