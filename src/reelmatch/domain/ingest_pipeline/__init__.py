"""Batch ingestion pipeline for reelmatch.

Candidates are split into batches, each item is resolved through an
``ItemProcessor`` with per-item retries, and progress is published through a
``ProcessingStatusTracker`` after every batch.
"""

from __future__ import annotations

from .orchestrator import BatchIngestionOrchestrator, ItemOutcome, RunResult, aggregate_entries
from .processors import FetchByIdProcessor, ItemProcessor, ReconcileItemProcessor
from .retry import retry_with_backoff
from .status import ProcessingStatusTracker

__all__ = [
    "BatchIngestionOrchestrator",
    "FetchByIdProcessor",
    "ItemOutcome",
    "ItemProcessor",
    "ProcessingStatusTracker",
    "ReconcileItemProcessor",
    "RunResult",
    "aggregate_entries",
    "retry_with_backoff",
]
