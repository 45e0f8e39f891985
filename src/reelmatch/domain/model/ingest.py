"""Batch job description and the observable processing status snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .enums import RunState

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .catalog import Candidate

DEFAULT_MAX_ERROR_FRACTION = 0.3
DEFAULT_MAX_RETRIES_PER_ITEM = 3


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class BatchJob:
    """One ingestion run's worth of candidates plus its failure tolerances."""

    items: Sequence[Candidate]
    batch_size: int = 10
    max_error_fraction: float = DEFAULT_MAX_ERROR_FRACTION
    max_retries_per_item: int = DEFAULT_MAX_RETRIES_PER_ITEM

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if not 0.0 <= self.max_error_fraction <= 1.0:
            raise ValueError("max_error_fraction must be between 0 and 1")
        if self.max_retries_per_item < 1:
            raise ValueError("max_retries_per_item must be at least 1")

    @property
    def total(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class ProcessingStatus:
    """Immutable snapshot of a run's progress.

    ``processed == successful + failed`` holds for every instance built through
    :meth:`with_batch`; the tracker never mutates a snapshot in place.
    """

    is_running: bool = False
    processed: int = 0
    successful: int = 0
    failed: int = 0
    total: int = 0
    logs: tuple[str, ...] = ()
    last_updated: datetime = field(default_factory=_utcnow)
    state: RunState = RunState.IDLE

    @property
    def percent_complete(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.processed / self.total * 100)

    def with_batch(
        self,
        *,
        successful: int,
        failed: int,
        log_lines: Sequence[str],
        max_log_lines: int,
        now: datetime,
    ) -> ProcessingStatus:
        return replace(
            self,
            processed=self.processed + successful + failed,
            successful=self.successful + successful,
            failed=self.failed + failed,
            logs=_tail((*self.logs, *log_lines), max_log_lines),
            last_updated=now,
        )

    def with_logs(
        self,
        log_lines: Sequence[str],
        *,
        max_log_lines: int,
        now: datetime,
    ) -> ProcessingStatus:
        return replace(
            self,
            logs=_tail((*self.logs, *log_lines), max_log_lines),
            last_updated=now,
        )


def _tail(lines: tuple[str, ...], limit: int) -> tuple[str, ...]:
    if limit <= 0 or len(lines) <= limit:
        return lines
    return lines[-limit:]
