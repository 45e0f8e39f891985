"""Error taxonomy shared by the reconciliation and ingestion pipeline."""

from __future__ import annotations


class ReelmatchError(RuntimeError):
    """Base class for domain-level failures."""


class NotFoundError(ReelmatchError):
    """Raised when neither identifier lookup nor title search produced a match.

    This is a definitive answer from the catalog, so callers report it as
    "no match found" instead of retrying.
    """

    def __init__(self, title: str, *, identifiers: tuple[str, ...] = ()) -> None:
        detail = f" (ids: {', '.join(identifiers)})" if identifiers else ""
        super().__init__(f"No catalog match found for {title!r}{detail}")
        self.title = title
        self.identifiers = identifiers


class TransientServiceError(ReelmatchError):
    """Raised when an external service call fails in a way worth retrying."""

    def __init__(self, message: str, *, service: str | None = None) -> None:
        super().__init__(message)
        self.service = service


class ErrorBudgetExceeded(ReelmatchError):
    """Recorded when a run's failures exceed its tolerated error fraction."""

    def __init__(self, *, failed: int, total: int, allowed: int) -> None:
        super().__init__(f"Too many errors ({failed}/{total}, allowed {allowed}). Run aborted.")
        self.failed = failed
        self.total = total
        self.allowed = allowed


class OrchestratorBusyError(ReelmatchError):
    """Raised when a run is started while another run is still in progress."""
