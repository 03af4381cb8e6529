"""SQLite engines holding the flag tables."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from alembic import command
from sqlalchemy.engine import URL

from flagcache import config
from flagcache.adapters.db.engine import make_engine
from flagcache.adapters.db import schema  # noqa: F401 # pylint: disable=unused-import
from flagcache.adapters.db.metadata import metadata

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


@pytest.fixture
def sqlite_engine_memory() -> Iterator[Engine]:
    """In-memory SQLite engine for unit-style tests.

    Uses `make_engine()` so SQLite PRAGMAs are applied.
    Creates/drops tables with `metadata.create_all()` / `drop_all()`.

    Note: No Alembic migrations are run here; the tables come straight from
    `flagcache.adapters.db.schema`.

    Yields:
        Engine: SQLAlchemy engine bound to an in-memory DB.
    """
    url = "sqlite+pysqlite:///:memory:"
    test_engine = make_engine(url)
    metadata.create_all(test_engine)
    yield test_engine
    metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def sqlite_engine_file(tmp_path: Path) -> Iterator[Engine]:
    """File-backed SQLite engine migrated via Alembic (per test).

    For SQLite we prefer a temp *file* (not :memory:) so Alembic's schema
    changes persist across connections. This fixture:
      - builds a sqlite+pysqlite URL under the test's temp dir,
      - runs `alembic upgrade head` for that URL,
      - returns an Engine from `make_engine()` (so PRAGMAs apply),
      - disposes the engine at teardown.

    Yields:
        Engine: SQLAlchemy engine pointing at a temp file DB.
    """
    url = str(URL.create("sqlite+pysqlite", database=str(tmp_path / "flags.db")))
    cfg = config.build_alembic_config(url)
    command.upgrade(cfg, "head")
    test_engine = make_engine(url)
    try:
        yield test_engine
    finally:
        test_engine.dispose()
