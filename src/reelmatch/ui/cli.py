# ruff: noqa: T201

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from reelmatch.app import (
    IngestionController,
    build_status_tracker,
    get_status,
    ingest_candidates,
    load_candidates,
    match_title,
    recommend,
)
from reelmatch.config import IngestConfig, configure_logging, get_ingest_config
from reelmatch.domain.model import MediaType, Preferences
from reelmatch.domain.ratings import FILM_RATINGS, SERIES_RATINGS, ratings_up_to

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from reelmatch.domain.ingest_pipeline import RunResult
    from reelmatch.domain.model import CatalogEntry, ProcessingStatus
    from reelmatch.domain.reconciliation import ReconciliationOutcome

log = logging.getLogger(__name__)

_active_controller: IngestionController | None = None


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile and ingest recommendation candidates")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Resolve a file of candidates in batches")
    ingest.add_argument("file", help="JSON array or JSON-lines file of candidates")
    ingest.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Items per batch for runs larger than 20 items (defaults to config)",
    )
    ingest.add_argument(
        "--max-error-fraction",
        type=float,
        default=None,
        help="Fraction of failed items tolerated before aborting (defaults to config)",
    )
    ingest.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Attempts per item before it counts as failed (defaults to config)",
    )
    ingest.add_argument(
        "--max-rating",
        type=str,
        help="Only keep entries admissible under this rating ceiling",
    )
    ingest.add_argument(
        "--fetch-by-id",
        action="store_true",
        help="Fetch entries by identifier only, without title matching",
    )

    match = subparsers.add_parser("match", help="Find catalog matches for a single title")
    match.add_argument("title")
    match.add_argument("--year", type=str)
    match.add_argument("--id", dest="external_id", type=str, help="Known catalog id (tt...)")
    match.add_argument("--url", dest="external_url", type=str, help="Catalog title URL")

    rec = subparsers.add_parser("recommend", help="Suggest titles for a set of preferences")
    rec.add_argument("--genre", dest="genres", action="append", default=[], help="Repeatable")
    rec.add_argument("--mood", type=str)
    rec.add_argument("--favorite", dest="favorites", action="append", default=[])
    rec.add_argument("--avoid", action="append", default=[])
    rec.add_argument("--viewing-time", type=int, help="Available time in minutes")
    rec.add_argument("--max-rating", type=str)
    rec.add_argument("--media-type", choices=[member.value for member in MediaType])
    rec.add_argument("--limit", type=int, default=20)

    status = subparsers.add_parser("status", help="Show the status of the last ingestion run")
    status.add_argument("--watch", action="store_true", help="Poll until the run finishes")
    status.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Polling interval in seconds (defaults to config)",
    )

    ratings = subparsers.add_parser("ratings", help="List ratings admissible under a ceiling")
    ratings.add_argument("ceiling", nargs="?", default="")

    return parser.parse_args(list(argv))


def _ingest_config(args: argparse.Namespace) -> IngestConfig:
    overrides = {
        "batch_size": args.batch_size,
        "max_error_fraction": args.max_error_fraction,
        "max_retries_per_item": args.max_retries,
    }
    config = dataclasses.replace(
        get_ingest_config(),
        **{name: value for name, value in overrides.items() if value is not None},
    )
    if config.batch_size < 1:
        raise ValueError("--batch-size must be at least 1")
    if not 0.0 <= config.max_error_fraction <= 1.0:
        raise ValueError("--max-error-fraction must be between 0 and 1")
    if config.max_retries_per_item < 1:
        raise ValueError("--max-retries must be at least 1")
    return config


def _validate(args: argparse.Namespace) -> None:
    if args.command == "ingest":
        _ingest_config(args)
    elif args.command == "recommend" and args.limit < 1:
        raise ValueError("--limit must be at least 1")
    elif args.command == "status" and args.interval is not None and args.interval <= 0:
        raise ValueError("--interval must be positive")


def format_status(status: ProcessingStatus) -> str:
    header = (
        f"state={status.state} running={status.is_running} "
        f"processed={status.processed}/{status.total} ({status.percent_complete}%) "
        f"successful={status.successful} failed={status.failed} "
        f"updated={status.last_updated.isoformat(timespec='seconds')}"
    )
    return "\n".join((header, *(f"  {line}" for line in status.logs)))


def format_entry(entry: CatalogEntry) -> str:
    year = f" ({entry.year})" if entry.year else ""
    rating = entry.rating or "unrated"
    return f"{entry.id}  {entry.title}{year}  [{entry.media_type}, {rating}]"


def _print_outcome(outcome: ReconciliationOutcome) -> None:
    if outcome.selected is not None:
        print(f"Selected: {format_entry(outcome.selected)}")
        return
    print("Ambiguous match, candidates:")
    for match in outcome.matches:
        flag = " (low similarity)" if match.low_similarity else ""
        print(f"  {match.similarity:.2f} {match.tier:<6} {format_entry(match.entry)}{flag}")


def _print_run(result: RunResult) -> None:
    print(format_status(result.status))
    if result.error is not None:
        print(f"Run ended {result.state}: {result.error}")
    for entry in result.entries:
        print(format_entry(entry))


def watch_status(
    *,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    reader: Callable[[], ProcessingStatus] | None = None,
) -> ProcessingStatus:
    """Print the status every ``interval`` seconds until the run is no longer running."""

    read = reader or get_status
    while True:
        status = read()
        print(format_status(status))
        if not status.is_running:
            return status
        sleep(interval)


def _run_ingest(args: argparse.Namespace) -> None:
    global _active_controller  # noqa: PLW0603

    candidates = load_candidates(args.file)
    config = _ingest_config(args)
    controller = IngestionController(
        tracker=build_status_tracker(max_log_lines=config.max_log_lines), config=config
    )
    _active_controller = controller
    try:
        result = ingest_candidates(
            candidates,
            controller=controller,
            processor_kind="fetch" if args.fetch_by_id else "reconcile",
            max_rating=args.max_rating,
        )
    finally:
        _active_controller = None
    _print_run(result)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "ingest":
            _run_ingest(parsed_args)
        elif parsed_args.command == "match":
            _print_outcome(
                match_title(
                    parsed_args.title,
                    parsed_args.year,
                    external_id=parsed_args.external_id,
                    external_url=parsed_args.external_url,
                )
            )
        elif parsed_args.command == "recommend":
            preferences = Preferences(
                genres=tuple(parsed_args.genres),
                mood=parsed_args.mood,
                favorite_content=tuple(parsed_args.favorites),
                content_to_avoid=tuple(parsed_args.avoid),
                viewing_time_minutes=parsed_args.viewing_time,
                max_rating=parsed_args.max_rating,
                media_type=MediaType(parsed_args.media_type) if parsed_args.media_type else None,
            )
            for entry in recommend(preferences, limit=parsed_args.limit):
                print(format_entry(entry))
        elif parsed_args.command == "status":
            if parsed_args.watch:
                interval = (
                    parsed_args.interval
                    or get_ingest_config().status_poll_interval_seconds
                )
                watch_status(interval=interval)
            else:
                print(format_status(get_status()))
        elif parsed_args.command == "ratings":
            admissible = ratings_up_to(parsed_args.ceiling)
            ordered = (*FILM_RATINGS, *SERIES_RATINGS)
            print(" ".join(rating for rating in ordered if rating in admissible))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Stop a running ingestion after its current batch; exit otherwise."""
    controller = _active_controller
    if controller is not None and controller.is_running:
        log.info("Interrupted, stopping after the current batch")
        controller.stop()
        return
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
