from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from reelmatch.adapters.sqlalchemy import SqlAlchemyStatusStore
from tests.support.catalog import FakeCatalog, make_entry

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("REELMATCH_DATA_DIR", str(tmp_path / "reelmatch-data"))


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def status_store(sqlite_engine: Engine) -> SqlAlchemyStatusStore:
    return SqlAlchemyStatusStore(sqlite_engine)


@pytest.fixture
def inception_catalog() -> FakeCatalog:
    inception = make_entry("tt1375666", "Inception", year="2010")
    interstellar = make_entry("tt0816692", "Interstellar", year="2014")
    return FakeCatalog(
        [inception, interstellar],
        searches={
            ("Inception", "2010"): [inception],
            ("Inception", None): [inception],
            ("Interstellar", None): [interstellar],
        },
    )
