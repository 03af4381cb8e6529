"""Shared fixtures: flag stores in each backend the cache can read from.

Database stores are migrated engines (SQLite file or PostgreSQL container),
picked by driver name through the indirect ``flag_db`` fixture. Eval-only
stores are envelope files together with the environment that points the
cache at them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from flagcache import config
from tests.fixtures.datagen import envelope_bytes

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from flagcache.domain.flag import Flag


pytest_plugins = [
    "tests.fixtures.sqlite",
    "tests.fixtures.postgres",
    "tests.fixtures.datagen",
]

# driver name -> fixture providing a migrated engine for it
DB_FIXTURES = {
    "sqlite": "sqlite_engine_file",
    "postgres": "postgres_engine",
}


@pytest.fixture
def flag_db(request: pytest.FixtureRequest) -> Engine:
    """Migrated, empty flag tables on the driver named by the parameter.

    Example:
        ```py
        @pytest.mark.parametrize("flag_db", ["sqlite", "postgres"], indirect=True)
        def test_something(flag_db): ...
        ```
    """
    return request.getfixturevalue(DB_FIXTURES[request.param])


@pytest.fixture
def flags_file(tmp_path: Path, sample_flags: list[Flag]) -> Path:
    """An envelope file holding the sample flags."""
    path = tmp_path / "flags.json"
    path.write_bytes(envelope_bytes(sample_flags))
    return path


@pytest.fixture
def eval_only_env(flags_file: Path) -> dict[str, str]:
    """Environment selecting the json_file backend on `flags_file`."""
    return {
        config.EVAL_ONLY_MODE_ENV: "1",
        config.DB_DRIVER_ENV: "json_file",
        config.DB_CONNECTION_STR_ENV: str(flags_file),
    }
