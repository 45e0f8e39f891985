from __future__ import annotations

import dataclasses
from datetime import UTC, datetime, timedelta

import pytest

from reelmatch.domain.ingest_pipeline import ProcessingStatusTracker
from reelmatch.domain.model import ProcessingStatus, RunState


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class MemoryStatusStore:
    def __init__(self) -> None:
        self.saved: dict[str, ProcessingStatus] = {}

    def save(self, key: str, status: ProcessingStatus) -> None:
        self.saved[key] = status

    def load(self, key: str) -> ProcessingStatus | None:
        return self.saved.get(key)

    def clear(self, key: str) -> None:
        self.saved.pop(key, None)


def test_snapshots_are_immutable_and_replaced() -> None:
    tracker = ProcessingStatusTracker()
    before = tracker.start_run(4)

    after = tracker.record_batch(3, 1, ["Batch 1/1: 3 succeeded, 1 failed"])

    assert before.processed == 0
    assert after.processed == 4
    assert after.successful == 3
    assert after.failed == 1
    assert after.percent_complete == 100
    with pytest.raises(dataclasses.FrozenInstanceError):
        after.processed = 0  # type: ignore[misc]


def test_start_run_resets_counters() -> None:
    tracker = ProcessingStatusTracker()
    tracker.start_run(2)
    tracker.record_batch(2, 0)
    tracker.finish(RunState.COMPLETED)

    status = tracker.start_run(7)

    assert status.is_running
    assert status.state is RunState.RUNNING
    assert (status.processed, status.successful, status.failed, status.total) == (0, 0, 0, 7)
    assert status.logs == ("Started processing 7 items",)


def test_log_is_bounded_to_most_recent_lines() -> None:
    tracker = ProcessingStatusTracker(max_log_lines=3)
    tracker.start_run(10)

    tracker.append_logs(["one", "two"])
    status = tracker.append_logs(["three", "four"])

    assert status.logs == ("two", "three", "four")


def test_finish_requires_terminal_state() -> None:
    tracker = ProcessingStatusTracker()
    tracker.start_run(1)

    with pytest.raises(ValueError, match="not a terminal state"):
        tracker.finish(RunState.RUNNING)

    status = tracker.finish(RunState.ABORTED, "Run aborted")
    assert not status.is_running
    assert status.state is RunState.ABORTED
    assert status.logs[-1] == "Run aborted"


def test_negative_batch_counts_are_rejected() -> None:
    tracker = ProcessingStatusTracker()

    with pytest.raises(ValueError, match="negative"):
        tracker.record_batch(-1, 0)


def test_stale_running_snapshot_is_reported_as_stalled() -> None:
    clock = FakeClock()
    tracker = ProcessingStatusTracker(clock=clock)
    tracker.start_run(5)

    clock.advance(minutes=9)
    assert tracker.snapshot().is_running

    clock.advance(minutes=2)
    stalled = tracker.snapshot()

    assert not stalled.is_running
    assert stalled.state is RunState.FAILED
    assert stalled.logs[-1] == (
        "Processing appears to have stalled (no update for over 10 minutes)"
    )


def test_finished_snapshot_never_goes_stale() -> None:
    clock = FakeClock()
    tracker = ProcessingStatusTracker(clock=clock)
    tracker.start_run(1)
    tracker.finish(RunState.COMPLETED)

    clock.advance(hours=5)

    assert tracker.snapshot().state is RunState.COMPLETED


def test_updates_are_mirrored_and_restored() -> None:
    store = MemoryStatusStore()
    tracker = ProcessingStatusTracker(store=store, key="nightly")
    tracker.start_run(3)
    tracker.record_batch(2, 1, ["done"])

    restored = ProcessingStatusTracker.restore(store, key="nightly")

    assert restored.snapshot() == tracker.snapshot()
    assert store.saved["nightly"].processed == 3


def test_restore_without_saved_snapshot_starts_idle() -> None:
    tracker = ProcessingStatusTracker.restore(MemoryStatusStore())

    assert tracker.snapshot().state is RunState.IDLE
    assert tracker.snapshot().processed == 0


def test_reset_returns_to_idle() -> None:
    tracker = ProcessingStatusTracker()
    tracker.start_run(2)

    status = tracker.reset()

    assert status.state is RunState.IDLE
    assert status.logs == ()
