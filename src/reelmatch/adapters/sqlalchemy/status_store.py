"""Key-value persistence of processing status snapshots."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, delete, insert, select, update

from reelmatch.common.storage import get_database_uri
from reelmatch.domain.model import ProcessingStatus, RunState

from .mappings import create_all_tables, processing_status_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from reelmatch.domain.ports import StatusStore

log = getLogger(__name__)


def status_to_json(status: ProcessingStatus) -> str:
    return json.dumps(
        {
            "is_running": status.is_running,
            "processed": status.processed,
            "successful": status.successful,
            "failed": status.failed,
            "total": status.total,
            "logs": list(status.logs),
            "last_updated": status.last_updated.isoformat(),
            "state": status.state.value,
        }
    )


def status_from_json(payload: str) -> ProcessingStatus:
    data: dict[str, Any] = json.loads(payload)
    last_updated = datetime.fromisoformat(data["last_updated"])
    if last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=UTC)
    return ProcessingStatus(
        is_running=bool(data["is_running"]),
        processed=int(data["processed"]),
        successful=int(data["successful"]),
        failed=int(data["failed"]),
        total=int(data["total"]),
        logs=tuple(str(line) for line in data.get("logs", ())),
        last_updated=last_updated,
        state=RunState(data.get("state", RunState.IDLE)),
    )


class SqlAlchemyStatusStore:
    """Mirror of the latest :class:`ProcessingStatus` per key in one table row."""

    def __init__(self, engine: Engine, *, create_tables: bool = True) -> None:
        self._engine = engine
        if create_tables:
            create_all_tables(engine)

    def save(self, key: str, status: ProcessingStatus) -> None:
        values = {"payload": status_to_json(status), "updated_at": status.last_updated}
        table = processing_status_table
        with self._engine.begin() as connection:
            result = connection.execute(update(table).where(table.c.key == key).values(**values))
            if result.rowcount == 0:
                connection.execute(insert(table).values(key=key, **values))

    def load(self, key: str) -> ProcessingStatus | None:
        table = processing_status_table
        with self._engine.connect() as connection:
            payload = connection.execute(
                select(table.c.payload).where(table.c.key == key)
            ).scalar_one_or_none()
        if payload is None:
            return None
        try:
            return status_from_json(payload)
        except (ValueError, KeyError, TypeError):
            log.warning("Discarding unreadable status snapshot for %r", key)
            return None

    def clear(self, key: str) -> None:
        table = processing_status_table
        with self._engine.begin() as connection:
            connection.execute(delete(table).where(table.c.key == key))


def create_status_store(database_uri: str | None = None) -> SqlAlchemyStatusStore:
    engine = create_engine(database_uri or get_database_uri())
    return SqlAlchemyStatusStore(engine)


if TYPE_CHECKING:

    def _store_check(engine: Engine) -> StatusStore:
        return SqlAlchemyStatusStore(engine)
