from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence  # noqa: TC003

import pytest

from reelmatch.domain.errors import ErrorBudgetExceeded, OrchestratorBusyError
from reelmatch.domain.ingest_pipeline import (
    BatchIngestionOrchestrator,
    FetchByIdProcessor,
    ItemOutcome,
    ProcessingStatusTracker,
    ReconcileItemProcessor,
    aggregate_entries,
)
from reelmatch.domain.model import (
    BatchJob,
    Candidate,
    CatalogEntry,
    ProcessingStatus,
    RunState,
)
from reelmatch.domain.reconciliation import ContentReconciler
from tests.support.catalog import FakeCatalog, RecordingSleep, make_entry, no_sleep


def _candidates(count: int) -> list[Candidate]:
    return [
        Candidate(title=f"Film {index}", external_id=f"tt{index:07d}") for index in range(count)
    ]


def _catalog_for(candidates: list[Candidate]) -> FakeCatalog:
    return FakeCatalog(
        [make_entry(c.external_id or "", c.title) for c in candidates],
    )


def _orchestrator(
    catalog: FakeCatalog,
    sleep: Callable[[float], Awaitable[None]] = no_sleep,
) -> BatchIngestionOrchestrator:
    return BatchIngestionOrchestrator(FetchByIdProcessor(catalog), sleep=sleep)


def test_error_budget_aborts_run_early() -> None:
    candidates = _candidates(10)
    catalog = _catalog_for(candidates)
    catalog.always_fail.update(c.external_id or "" for c in candidates)
    tracker = ProcessingStatusTracker()

    result = asyncio.run(
        _orchestrator(catalog).run(BatchJob(candidates, max_error_fraction=0.3), tracker)
    )

    assert result.state is RunState.ABORTED
    assert isinstance(result.error, ErrorBudgetExceeded)
    assert result.error.allowed == 3
    assert result.status.processed == 5
    assert result.status.processed < result.status.total == 10
    assert result.status.processed == result.status.successful + result.status.failed
    assert not result.status.is_running
    assert result.status.logs[-1] == "Too many errors (5/10, allowed 3). Run aborted."


def test_completed_run_counts_every_item() -> None:
    candidates = _candidates(12)
    catalog = _catalog_for(candidates[:10])
    tracker = ProcessingStatusTracker()

    result = asyncio.run(_orchestrator(catalog).run(BatchJob(candidates), tracker))

    status = tracker.snapshot()
    assert result.state is RunState.COMPLETED
    assert status.processed == status.total == 12
    assert status.successful == 10
    assert status.failed == 2
    assert status.processed == status.successful + status.failed
    assert status.logs[0] == "Started processing 12 items"
    assert status.logs[-1] == "Processing complete: 10 succeeded, 2 failed"
    assert len(result.entries) == 10
    assert len(result.failures) == 2


def test_small_runs_use_small_batches() -> None:
    sleep = RecordingSleep()
    candidates = _candidates(20)
    orchestrator = _orchestrator(_catalog_for(candidates), sleep)
    tracker = ProcessingStatusTracker(max_log_lines=200)

    asyncio.run(orchestrator.run(BatchJob(candidates, batch_size=10), tracker))

    assert orchestrator.batch_size_for(BatchJob(candidates, batch_size=10)) == 5
    assert sleep.calls == [0.5, 0.5, 0.5]
    assert "Batch 4/4: 5 succeeded, 0 failed" in tracker.snapshot().logs


def test_large_runs_use_configured_batch_size() -> None:
    sleep = RecordingSleep()
    candidates = _candidates(25)
    orchestrator = _orchestrator(_catalog_for(candidates), sleep)

    asyncio.run(
        orchestrator.run(BatchJob(candidates, batch_size=10), ProcessingStatusTracker())
    )

    assert sleep.calls == [0.5, 0.5]


def test_transient_failures_are_retried_with_fixed_delay() -> None:
    sleep = RecordingSleep()
    candidates = _candidates(1)
    catalog = _catalog_for(candidates)
    catalog.fail_next("tt0000000", times=2)

    result = asyncio.run(
        _orchestrator(catalog, sleep).run(BatchJob(candidates), ProcessingStatusTracker())
    )

    assert result.state is RunState.COMPLETED
    assert result.status.successful == 1
    assert catalog.id_calls == ["tt0000000"] * 3
    assert sleep.calls == [1.0, 1.0]


def test_item_failing_every_attempt_counts_once() -> None:
    sleep = RecordingSleep()
    candidates = _candidates(1)
    catalog = _catalog_for(candidates)
    catalog.always_fail.add("tt0000000")

    result = asyncio.run(
        _orchestrator(catalog, sleep).run(
            BatchJob(candidates, max_error_fraction=1.0, max_retries_per_item=2),
            ProcessingStatusTracker(),
        )
    )

    assert result.state is RunState.COMPLETED
    assert result.status.failed == 1
    assert catalog.id_calls == ["tt0000000"] * 2
    assert sleep.calls == [1.0]
    assert result.status.logs[-2].startswith("FAIL Film 0: catalog unavailable")


def test_not_found_is_not_retried() -> None:
    sleep = RecordingSleep()
    missing = [Candidate(title="Ghost", year="1990", external_id="tt404")]

    result = asyncio.run(
        _orchestrator(FakeCatalog(), sleep).run(
            BatchJob(missing, max_error_fraction=1.0), ProcessingStatusTracker()
        )
    )

    assert result.status.failed == 1
    assert sleep.calls == []
    assert "MISS Ghost (1990): no match found" in result.status.logs


def test_stop_request_is_honoured_between_batches() -> None:
    candidates = _candidates(10)
    checks: list[int] = []

    def should_continue() -> bool:
        checks.append(1)
        return len(checks) < 2

    result = asyncio.run(
        _orchestrator(_catalog_for(candidates)).run(
            BatchJob(candidates), ProcessingStatusTracker(), should_continue=should_continue
        )
    )

    assert result.state is RunState.STOPPED
    assert result.status.processed == 5
    assert result.status.state is RunState.STOPPED
    assert result.status.logs[-1] == "Stop requested, stopping processing"


def test_second_run_while_running_is_rejected() -> None:
    release = asyncio.Event()

    async def slow_processor(candidate: Candidate) -> CatalogEntry:
        await release.wait()
        return make_entry("tt1", candidate.title)

    async def scenario() -> None:
        orchestrator = BatchIngestionOrchestrator(slow_processor, sleep=no_sleep)
        job = BatchJob([Candidate(title="Slow")])
        first = asyncio.create_task(orchestrator.run(job, ProcessingStatusTracker()))
        await asyncio.sleep(0)
        assert orchestrator.state is RunState.RUNNING
        with pytest.raises(OrchestratorBusyError):
            await orchestrator.run(job, ProcessingStatusTracker())
        release.set()
        result = await first
        assert result.state is RunState.COMPLETED
        assert orchestrator.state is RunState.COMPLETED

    asyncio.run(scenario())


def test_cancelled_run_is_recorded_as_stopped() -> None:
    async def hanging_processor(candidate: Candidate) -> CatalogEntry:
        await asyncio.Event().wait()
        raise AssertionError(candidate.title)

    tracker = ProcessingStatusTracker()

    async def scenario() -> None:
        orchestrator = BatchIngestionOrchestrator(hanging_processor, sleep=no_sleep)
        task = asyncio.create_task(orchestrator.run(BatchJob([Candidate(title="Hang")]), tracker))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert orchestrator.state is RunState.STOPPED

    asyncio.run(scenario())

    assert tracker.snapshot().state is RunState.STOPPED
    assert tracker.snapshot().logs[-1] == "Processing cancelled"


class _BrokenTracker(ProcessingStatusTracker):
    def record_batch(
        self,
        successful: int,
        failed: int,
        log_lines: Sequence[str] = (),
    ) -> ProcessingStatus:
        raise RuntimeError("status sink unavailable")


def test_unexpected_errors_fail_the_run() -> None:
    candidates = _candidates(2)
    tracker = _BrokenTracker()

    result = asyncio.run(_orchestrator(_catalog_for(candidates)).run(BatchJob(candidates), tracker))

    assert result.state is RunState.FAILED
    assert isinstance(result.error, RuntimeError)
    assert tracker.snapshot().state is RunState.FAILED
    assert tracker.snapshot().logs[-1] == "Processing failed: status sink unavailable"


def test_unexpected_item_errors_count_as_failures() -> None:
    async def exploding(candidate: Candidate) -> CatalogEntry:
        raise KeyError(candidate.title)

    result = asyncio.run(
        BatchIngestionOrchestrator(exploding, sleep=no_sleep).run(
            BatchJob([Candidate(title="Boom")], max_error_fraction=1.0),
            ProcessingStatusTracker(),
        )
    )

    assert result.state is RunState.COMPLETED
    assert result.status.failed == 1
    assert isinstance(result.failures[0].error, KeyError)


def test_results_are_deduplicated_and_rating_filtered() -> None:
    family = make_entry("tt1", "Family Film", rating="PG")
    adult = make_entry("tt2", "Adult Film", rating="R")
    catalog = FakeCatalog([family, adult])
    job = BatchJob(
        [
            Candidate(title="Family Film", external_id="tt1"),
            Candidate(title="Family Film again", external_id="tt1"),
            Candidate(title="Adult Film", external_id="tt2"),
        ]
    )

    result = asyncio.run(
        _orchestrator(catalog).run(job, ProcessingStatusTracker(), max_rating="PG-13")
    )

    assert result.entries == (family,)
    assert result.status.successful == 3


def test_aggregate_entries_without_ceiling_keeps_everything() -> None:
    family = make_entry("tt1", "Family Film", rating="PG")
    adult = make_entry("tt2", "Adult Film", rating="R")
    outcomes = [
        ItemOutcome(candidate=Candidate(title="a"), entry=adult),
        ItemOutcome(candidate=Candidate(title="b"), error=RuntimeError("x")),
        ItemOutcome(candidate=Candidate(title="c"), entry=family),
        ItemOutcome(candidate=Candidate(title="d"), entry=adult),
    ]

    assert aggregate_entries(outcomes) == (adult, family)


def test_reconcile_processor_returns_best_match(inception_catalog: FakeCatalog) -> None:
    processor = ReconcileItemProcessor(ContentReconciler(inception_catalog))
    tracker = ProcessingStatusTracker()

    result = asyncio.run(
        BatchIngestionOrchestrator(processor, sleep=no_sleep).run(
            BatchJob([Candidate(title="Inception", year="2010")]), tracker
        )
    )

    assert [entry.id for entry in result.entries] == ["tt1375666"]
    assert "OK Inception (2010) -> Inception (2010) [tt1375666]" in tracker.snapshot().logs
