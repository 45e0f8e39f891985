"""Reconciliation of recommendation candidates against the catalog."""

from __future__ import annotations

from .identifiers import candidate_identifiers, identifier_from_url
from .reconciler import (
    ContentReconciler,
    ReconcilerSettings,
    ReconciliationOutcome,
    rank_matches,
)

__all__ = [
    "ContentReconciler",
    "ReconcilerSettings",
    "ReconciliationOutcome",
    "candidate_identifiers",
    "identifier_from_url",
    "rank_matches",
]
