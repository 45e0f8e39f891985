"""Port for mirroring processing status snapshots to durable storage."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reelmatch.domain.model import ProcessingStatus


@runtime_checkable
class StatusStore(Protocol):
    def save(self, key: str, status: ProcessingStatus) -> None: ...

    def load(self, key: str) -> ProcessingStatus | None: ...

    def clear(self, key: str) -> None: ...


__all__ = ["StatusStore"]
