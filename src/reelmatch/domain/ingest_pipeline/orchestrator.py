"""Fault-tolerant batch resolution of candidate lists.

Run lifecycle::

    IDLE -> RUNNING -> COMPLETED | ABORTED | FAILED | STOPPED

Exactly one batch is in flight at a time; the items inside a batch are
resolved concurrently. The error budget is checked after every batch and the
``should_continue`` callback before every batch.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from reelmatch.domain.errors import (
    ErrorBudgetExceeded,
    NotFoundError,
    OrchestratorBusyError,
    ReelmatchError,
)
from reelmatch.domain.model import RunState
from reelmatch.domain.ratings import filter_by_rating

from .retry import retry_with_backoff

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from reelmatch.domain.model import BatchJob, Candidate, CatalogEntry, ProcessingStatus

    from .processors import ItemProcessor
    from .status import ProcessingStatusTracker

log = getLogger(__name__)

type Sleep = Callable[[float], Awaitable[None]]
type ContinueCheck = Callable[[], bool]

DEFAULT_RETRY_DELAY = 1.0
DEFAULT_INTER_BATCH_DELAY = 0.5
DEFAULT_SMALL_RUN_THRESHOLD = 20
DEFAULT_SMALL_RUN_BATCH_SIZE = 5


def _always_continue() -> bool:
    return True


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    candidate: Candidate
    entry: CatalogEntry | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.entry is not None

    def log_line(self) -> str:
        if self.entry is not None:
            year = f" ({self.entry.year})" if self.entry.year else ""
            return f"OK {self.candidate.describe()} -> {self.entry.title}{year} [{self.entry.id}]"
        if isinstance(self.error, NotFoundError):
            return f"MISS {self.candidate.describe()}: no match found"
        return f"FAIL {self.candidate.describe()}: {self.error}"


@dataclass(frozen=True, slots=True)
class RunResult:
    """Terminal outcome of one orchestrator run.

    ``entries`` holds the distinct resolved catalog entries (rating ceiling
    applied); ``error`` carries the reason for an ABORTED or FAILED run.
    """

    state: RunState
    status: ProcessingStatus
    entries: tuple[CatalogEntry, ...] = ()
    outcomes: tuple[ItemOutcome, ...] = ()
    error: Exception | None = None

    @property
    def failures(self) -> tuple[ItemOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if not outcome.succeeded)


class BatchIngestionOrchestrator:
    def __init__(
        self,
        processor: ItemProcessor,
        *,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        inter_batch_delay: float = DEFAULT_INTER_BATCH_DELAY,
        small_run_threshold: int = DEFAULT_SMALL_RUN_THRESHOLD,
        small_run_batch_size: int = DEFAULT_SMALL_RUN_BATCH_SIZE,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._processor = processor
        self._retry_delay = retry_delay
        self._inter_batch_delay = inter_batch_delay
        self._small_run_threshold = small_run_threshold
        self._small_run_batch_size = small_run_batch_size
        self._sleep = sleep
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def batch_size_for(self, job: BatchJob) -> int:
        if job.total <= self._small_run_threshold:
            return self._small_run_batch_size
        return job.batch_size

    async def run(
        self,
        job: BatchJob,
        status_sink: ProcessingStatusTracker,
        *,
        should_continue: ContinueCheck = _always_continue,
        max_rating: str | None = None,
    ) -> RunResult:
        """Resolve every item of ``job`` and report progress to ``status_sink``.

        Item failures and an exhausted error budget are reported through the
        returned :class:`RunResult`; only a second concurrent ``run`` raises
        (``OrchestratorBusyError``).
        """

        if self._state is RunState.RUNNING:
            raise OrchestratorBusyError("An ingestion run is already in progress")
        self._state = RunState.RUNNING

        outcomes: list[ItemOutcome] = []
        error: Exception | None = None
        try:
            status_sink.start_run(job.total)
            state, error, final_line = await self._run_batches(
                job, status_sink, should_continue, outcomes
            )
        except asyncio.CancelledError:
            self._state = RunState.STOPPED
            status_sink.finish(RunState.STOPPED, "Processing cancelled")
            raise
        except Exception as exc:
            log.exception("Ingestion run failed")
            state, error, final_line = RunState.FAILED, exc, f"Processing failed: {exc}"

        status = self._finish(status_sink, state, final_line)
        self._state = state
        entries = aggregate_entries(outcomes, max_rating=max_rating)
        log.info(
            "Ingestion run %s: %d/%d processed, %d distinct entries",
            state,
            status.processed,
            status.total,
            len(entries),
        )
        return RunResult(
            state=state,
            status=status,
            entries=entries,
            outcomes=tuple(outcomes),
            error=error,
        )

    async def _run_batches(
        self,
        job: BatchJob,
        status_sink: ProcessingStatusTracker,
        should_continue: ContinueCheck,
        outcomes: list[ItemOutcome],
    ) -> tuple[RunState, Exception | None, str]:
        batches = _partition(job.items, self.batch_size_for(job))
        allowed = math.ceil(job.total * job.max_error_fraction)
        failed_total = 0
        successful_total = 0

        for index, batch in enumerate(batches, start=1):
            if not should_continue():
                log.info("Stop requested, stopping before batch %d/%d", index, len(batches))
                return RunState.STOPPED, None, "Stop requested, stopping processing"

            results = await asyncio.gather(*(self._process_item(item, job) for item in batch))
            outcomes.extend(results)

            succeeded = sum(1 for outcome in results if outcome.succeeded)
            failed = len(results) - succeeded
            successful_total += succeeded
            failed_total += failed
            status_sink.record_batch(
                succeeded,
                failed,
                [
                    f"Batch {index}/{len(batches)}: {succeeded} succeeded, {failed} failed",
                    *(outcome.log_line() for outcome in results),
                ],
            )

            if failed_total > allowed:
                budget = ErrorBudgetExceeded(failed=failed_total, total=job.total, allowed=allowed)
                log.warning("%s", budget)
                return RunState.ABORTED, budget, str(budget)

            if index < len(batches):
                await self._sleep(self._inter_batch_delay)

        return (
            RunState.COMPLETED,
            None,
            f"Processing complete: {successful_total} succeeded, {failed_total} failed",
        )

    async def _process_item(self, candidate: Candidate, job: BatchJob) -> ItemOutcome:
        processor = self._processor
        try:
            entry = await retry_with_backoff(
                lambda: processor(candidate),
                max_retries=job.max_retries_per_item,
                delay=self._retry_delay,
                sleep=self._sleep,
                label=candidate.describe(),
            )
        except ReelmatchError as exc:
            return ItemOutcome(candidate=candidate, error=exc)
        except Exception as exc:
            log.exception("Unexpected error while processing %r", candidate.title)
            return ItemOutcome(candidate=candidate, error=exc)
        return ItemOutcome(candidate=candidate, entry=entry)

    def _finish(
        self,
        status_sink: ProcessingStatusTracker,
        state: RunState,
        final_line: str,
    ) -> ProcessingStatus:
        try:
            return status_sink.finish(state, final_line)
        except Exception:
            log.exception("Could not record final status %s", state)
            return status_sink.snapshot()


def aggregate_entries(
    outcomes: Iterable[ItemOutcome],
    *,
    max_rating: str | None = None,
) -> tuple[CatalogEntry, ...]:
    """Distinct resolved entries in resolution order, filtered by ``max_rating``."""

    distinct: dict[str, CatalogEntry] = {}
    for outcome in outcomes:
        if outcome.entry is not None and outcome.entry.id not in distinct:
            distinct[outcome.entry.id] = outcome.entry
    if max_rating is None:
        return tuple(distinct.values())
    return tuple(filter_by_rating(distinct.values(), max_rating))


def _partition[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[start : start + size] for start in range(0, len(items), size)]
