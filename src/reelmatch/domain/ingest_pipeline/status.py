"""Thread-safe holder of the current ingestion status snapshot."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from reelmatch.domain.model import ProcessingStatus, RunState

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reelmatch.domain.ports import StatusStore

log = getLogger(__name__)

DEFAULT_STATUS_KEY = "ingest"
DEFAULT_MAX_LOG_LINES = 50
DEFAULT_STALE_AFTER = timedelta(minutes=10)

type Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProcessingStatusTracker:
    """Single owner of the observable :class:`ProcessingStatus`.

    Every mutator builds a fresh frozen snapshot and swaps it in under a lock,
    so readers always see a complete snapshot. When a ``store`` is given the
    new snapshot is mirrored to it after each swap.

    A snapshot that claims to be running but has not been touched for
    ``stale_after`` is reported as stalled by :meth:`snapshot`; this covers
    runs whose process died without reaching a terminal state.
    """

    def __init__(
        self,
        *,
        store: StatusStore | None = None,
        key: str = DEFAULT_STATUS_KEY,
        max_log_lines: int = DEFAULT_MAX_LOG_LINES,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Clock = _utcnow,
        initial: ProcessingStatus | None = None,
    ) -> None:
        if max_log_lines < 1:
            raise ValueError("max_log_lines must be at least 1")
        self._lock = threading.RLock()
        self._store = store
        self._key = key
        self._max_log_lines = max_log_lines
        self._stale_after = stale_after
        self._clock = clock
        self._status = initial or ProcessingStatus(last_updated=clock())

    @classmethod
    def restore(
        cls,
        store: StatusStore,
        *,
        key: str = DEFAULT_STATUS_KEY,
        max_log_lines: int = DEFAULT_MAX_LOG_LINES,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Clock = _utcnow,
    ) -> ProcessingStatusTracker:
        """Create a tracker seeded with the last snapshot persisted under ``key``."""

        initial = store.load(key)
        if initial is not None:
            log.debug("Restored status %s (%d/%d)", initial.state, initial.processed, initial.total)
        return cls(
            store=store,
            key=key,
            max_log_lines=max_log_lines,
            stale_after=stale_after,
            clock=clock,
            initial=initial,
        )

    @property
    def max_log_lines(self) -> int:
        return self._max_log_lines

    def snapshot(self) -> ProcessingStatus:
        with self._lock:
            status = self._status
        if status.is_running and self._clock() - status.last_updated > self._stale_after:
            minutes = int(self._stale_after.total_seconds() // 60)
            return replace(
                status,
                is_running=False,
                state=RunState.FAILED,
                logs=_bounded(
                    (
                        *status.logs,
                        "Processing appears to have stalled "
                        f"(no update for over {minutes} minutes)",
                    ),
                    self._max_log_lines,
                ),
            )
        return status

    def reset(self) -> ProcessingStatus:
        return self._swap(lambda _current: ProcessingStatus(last_updated=self._clock()))

    def start_run(self, total: int, *, log_line: str | None = None) -> ProcessingStatus:
        line = log_line or f"Started processing {total} items"
        return self._swap(
            lambda _current: ProcessingStatus(
                is_running=True,
                total=total,
                logs=(line,),
                last_updated=self._clock(),
                state=RunState.RUNNING,
            )
        )

    def record_batch(
        self,
        successful: int,
        failed: int,
        log_lines: Sequence[str] = (),
    ) -> ProcessingStatus:
        if successful < 0 or failed < 0:
            raise ValueError("batch counts must not be negative")
        return self._swap(
            lambda current: current.with_batch(
                successful=successful,
                failed=failed,
                log_lines=log_lines,
                max_log_lines=self._max_log_lines,
                now=self._clock(),
            )
        )

    def append_logs(self, log_lines: Sequence[str]) -> ProcessingStatus:
        return self._swap(
            lambda current: current.with_logs(
                log_lines, max_log_lines=self._max_log_lines, now=self._clock()
            )
        )

    def finish(self, state: RunState, log_line: str | None = None) -> ProcessingStatus:
        if not state.is_terminal:
            raise ValueError(f"{state} is not a terminal state")

        def _finish(current: ProcessingStatus) -> ProcessingStatus:
            lines = (log_line,) if log_line else ()
            return replace(
                current.with_logs(lines, max_log_lines=self._max_log_lines, now=self._clock()),
                is_running=False,
                state=state,
            )

        return self._swap(_finish)

    def _swap(self, build: Callable[[ProcessingStatus], ProcessingStatus]) -> ProcessingStatus:
        with self._lock:
            updated = build(self._status)
            self._status = updated
        if self._store is not None:
            self._store.save(self._key, updated)
        return updated


def _bounded(lines: tuple[str, ...], limit: int) -> tuple[str, ...]:
    return lines[-limit:] if len(lines) > limit else lines
