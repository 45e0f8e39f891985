"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from reelmatch.adapters.candidates_file import load_candidates
from reelmatch.adapters.gemini import GeminiRecommender
from reelmatch.adapters.omdb import OmdbCatalog, OmdbClient, default_resilience
from reelmatch.adapters.sqlalchemy import create_status_store
from reelmatch.config import (
    IngestConfig,
    MatchingConfig,
    get_gemini_config,
    get_ingest_config,
    get_matching_config,
    get_omdb_config,
)
from reelmatch.domain.errors import OrchestratorBusyError, ReelmatchError
from reelmatch.domain.ingest_pipeline import (
    BatchIngestionOrchestrator,
    FetchByIdProcessor,
    ProcessingStatusTracker,
    ReconcileItemProcessor,
    RunResult,
    aggregate_entries,
    retry_with_backoff,
)
from reelmatch.domain.ingest_pipeline.orchestrator import ItemOutcome
from reelmatch.domain.model import BatchJob, Candidate, RunState
from reelmatch.domain.ratings import filter_by_rating
from reelmatch.domain.reconciliation import (
    ContentReconciler,
    ReconcilerSettings,
    ReconciliationOutcome,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reelmatch.domain.ingest_pipeline import ItemProcessor
    from reelmatch.domain.model import CatalogEntry, Preferences, ProcessingStatus
    from reelmatch.domain.ports import CatalogService, RecommendationService, StatusStore

log = getLogger(__name__)

type ProcessorKind = Literal["reconcile", "fetch"]
type Sleep = Callable[[float], Awaitable[None]]

__all__ = [
    "IngestionController",
    "build_omdb_catalog",
    "build_status_tracker",
    "get_status",
    "ingest_candidates",
    "load_candidates",
    "match_title",
    "recommend",
]


def build_omdb_catalog() -> OmdbCatalog:
    return OmdbCatalog(OmdbClient(get_omdb_config(resilience=default_resilience())))


def reconciler_settings(
    matching: MatchingConfig | None = None,
    *,
    quiz: bool = False,
) -> ReconcilerSettings:
    config = matching or get_matching_config()
    if quiz:
        return ReconcilerSettings.quiz(max_search_results=config.max_search_results)
    return ReconcilerSettings(
        auto_accept_threshold=config.auto_accept_threshold,
        strong_threshold=config.strong_threshold,
        max_search_results=config.max_search_results,
    )


def build_status_tracker(
    store: StatusStore | None = None,
    *,
    max_log_lines: int | None = None,
) -> ProcessingStatusTracker:
    """Tracker mirrored to (and restored from) the persistent status store."""

    effective_store = store or create_status_store()
    if max_log_lines is None:
        return ProcessingStatusTracker.restore(effective_store)
    return ProcessingStatusTracker.restore(effective_store, max_log_lines=max_log_lines)


def get_status(store: StatusStore | None = None) -> ProcessingStatus:
    return build_status_tracker(store).snapshot()


@asynccontextmanager
async def _open_catalog(catalog: CatalogService | None) -> AsyncIterator[CatalogService]:
    if catalog is not None:
        yield catalog
        return
    async with build_omdb_catalog() as omdb:
        yield omdb


class IngestionController:
    """Owns the status tracker and the continue flag of one ingestion surface.

    ``start`` runs a job to a terminal state; ``stop`` may be called from a
    signal handler or another task and takes effect before the next batch.
    """

    def __init__(
        self,
        *,
        tracker: ProcessingStatusTracker | None = None,
        config: IngestConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or IngestConfig()
        self.tracker = tracker or ProcessingStatusTracker(max_log_lines=self.config.max_log_lines)
        self._sleep = sleep
        self._should_continue = True
        self._active: BatchIngestionOrchestrator | None = None

    @property
    def is_running(self) -> bool:
        return self._active is not None and self._active.state is RunState.RUNNING

    def status(self) -> ProcessingStatus:
        return self.tracker.snapshot()

    def stop(self) -> None:
        if not self.is_running:
            log.info("Stop requested but no run is in progress")
            return
        log.info("Stop requested")
        self._should_continue = False
        self.tracker.append_logs(["Stop requested by user"])

    def build_job(self, items: Sequence[Candidate]) -> BatchJob:
        return BatchJob(
            items=tuple(items),
            batch_size=self.config.batch_size,
            max_error_fraction=self.config.max_error_fraction,
            max_retries_per_item=self.config.max_retries_per_item,
        )

    async def start(
        self,
        job: BatchJob,
        processor: ItemProcessor,
        *,
        max_rating: str | None = None,
    ) -> RunResult:
        if self.is_running:
            raise OrchestratorBusyError("An ingestion run is already in progress")
        self._should_continue = True
        orchestrator = BatchIngestionOrchestrator(
            processor,
            retry_delay=self.config.retry_delay_seconds,
            inter_batch_delay=self.config.inter_batch_delay_seconds,
            small_run_threshold=self.config.small_run_threshold,
            small_run_batch_size=self.config.small_run_batch_size,
            sleep=self._sleep,
        )
        self._active = orchestrator
        return await orchestrator.run(
            job,
            self.tracker,
            should_continue=lambda: self._should_continue,
            max_rating=max_rating,
        )

    def run_until_complete(
        self,
        job: BatchJob,
        processor: ItemProcessor,
        *,
        max_rating: str | None = None,
    ) -> RunResult:
        return asyncio.run(self.start(job, processor, max_rating=max_rating))


def ingest_candidates(
    candidates: Sequence[Candidate],
    *,
    catalog: CatalogService | None = None,
    controller: IngestionController | None = None,
    processor_kind: ProcessorKind = "reconcile",
    matching: MatchingConfig | None = None,
    max_rating: str | None = None,
) -> RunResult:
    """Resolve ``candidates`` against the catalog as one batch run."""

    effective_controller = controller or IngestionController(
        tracker=build_status_tracker(), config=get_ingest_config()
    )
    job = effective_controller.build_job(candidates)
    log.info(
        "Starting ingestion: items=%d, batch_size=%d, processor=%s",
        job.total,
        job.batch_size,
        processor_kind,
    )

    async def _run() -> RunResult:
        async with _open_catalog(catalog) as effective_catalog:
            processor: ItemProcessor
            if processor_kind == "fetch":
                processor = FetchByIdProcessor(effective_catalog)
            else:
                reconciler = ContentReconciler(effective_catalog, reconciler_settings(matching))
                processor = ReconcileItemProcessor(reconciler)
            return await effective_controller.start(job, processor, max_rating=max_rating)

    result = asyncio.run(_run())
    log.info(
        "Finished ingestion: state=%s, successful=%d, failed=%d, entries=%d",
        result.state,
        result.status.successful,
        result.status.failed,
        len(result.entries),
    )
    return result


def match_title(
    title: str,
    year: str | None = None,
    *,
    external_id: str | None = None,
    external_url: str | None = None,
    catalog: CatalogService | None = None,
    matching: MatchingConfig | None = None,
) -> ReconciliationOutcome:
    """Rank catalog matches for one title, asking for disambiguation when unsure."""

    candidate = Candidate(
        title=title, year=year, external_id=external_id, external_url=external_url
    )

    async def _run() -> ReconciliationOutcome:
        async with _open_catalog(catalog) as effective_catalog:
            reconciler = ContentReconciler(effective_catalog, reconciler_settings(matching))
            return await reconciler.reconcile(candidate)

    return asyncio.run(_run())


def recommend(
    preferences: Preferences,
    *,
    limit: int = 20,
    recommender: RecommendationService | None = None,
    catalog: CatalogService | None = None,
    matching: MatchingConfig | None = None,
    config: IngestConfig | None = None,
    sleep: Sleep = asyncio.sleep,
) -> list[CatalogEntry]:
    """Suggest titles for ``preferences`` and keep the ones the catalog confirms.

    Suggestions are reconciled in quiz mode (first result taken silently),
    ``small_run_batch_size`` at a time with transient failures retried,
    then deduplicated and filtered by ``preferences.max_rating``; without a
    rating preference the family-friendly default set applies.
    """

    ingest = config or get_ingest_config()

    async def _run() -> list[CatalogEntry]:
        if recommender is None:
            async with GeminiRecommender(get_gemini_config()) as gemini:
                candidates = await gemini.suggest(preferences, limit=limit)
        else:
            candidates = await recommender.suggest(preferences, limit=limit)

        async with _open_catalog(catalog) as effective_catalog:
            reconciler = ContentReconciler(
                effective_catalog,
                reconciler_settings(matching, quiz=True),
            )
            outcomes: list[ItemOutcome] = []
            width = ingest.small_run_batch_size
            for start in range(0, len(candidates), width):
                outcomes.extend(
                    await asyncio.gather(
                        *(
                            _recommend_one(reconciler, candidate, preferences, ingest, sleep)
                            for candidate in candidates[start : start + width]
                        )
                    )
                )
        entries = aggregate_entries(outcomes)
        return filter_by_rating(entries, preferences.max_rating or "")

    entries = asyncio.run(_run())
    log.info("Recommendation produced %d entries", len(entries))
    return entries


async def _recommend_one(
    reconciler: ContentReconciler,
    candidate: Candidate,
    preferences: Preferences,
    config: IngestConfig,
    sleep: Sleep,
) -> ItemOutcome:
    try:
        outcome = await retry_with_backoff(
            lambda: reconciler.reconcile(candidate, media_type=preferences.media_type),
            max_retries=config.max_retries_per_item,
            delay=config.retry_delay_seconds,
            sleep=sleep,
            label=f"Suggestion {candidate.describe()!r}",
        )
    except ReelmatchError as exc:
        log.info("Dropping suggestion %r: %s", candidate.describe(), exc)
        return ItemOutcome(candidate=candidate, error=exc)
    return ItemOutcome(candidate=candidate, entry=outcome.selected)
