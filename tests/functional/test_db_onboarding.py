"""Functional tests for the ``flagcache db`` subcommands.

Scope
-----
End-to-end verification of FLAGCACHE's database CLI via ``click.testing.CliRunner``.
Commands covered: ``current``, ``heads``, ``history``, ``status``, and ``upgrade``.

What these tests assert
-----------------------
* When ``FLAGCACHE_DB_CONNECTION_STR`` is unset/empty, commands that require a
  connection fail with exit code ``1`` and emit
  :data:`flagcache.entrypoints.cli.db.MISSING_DB_URL_MSG`.
* ``db heads`` includes the project's base Alembic revision.
* ``db current`` is empty before any upgrade; ``-v`` adds contextual details.
* ``db history`` lists the lineage; ``-i`` annotates the active ``(current)`` rev.
* ``db upgrade``:
  - prompts with a safety warning (backup guidance),
  - supports ``--sql`` dry-run output,
  - applies migrations when the user confirms.
* ``db status`` reports connectivity, backend, URL (masked), and schema state.

Notes
-----
These are functional (black-box) tests. They execute the CLI as a user would,
exercising prompts, output, and exit codes. The SQLite flows need nothing but
a temp directory; the PostgreSQL flow is marked ``@pytest.mark.slow`` and
relies on the ``pg_url_base`` fixture for a scratch server.
"""

import re

import pytest
from click.testing import CliRunner

from flagcache.config import DB_CONNECTION_STR_ENV
from flagcache.entrypoints.cli.db import (
    CANNOT_CONNECT_MSG,
    INVALID_URL_FORMAT_MSG,
    MISSING_DB_URL_MSG,
    UPGRADE_SCHEMA_INSTRUCTIONS,
    UPGRADE_SCHEMA_WARNING,
)
from flagcache.entrypoints.cli.main import flagcache as flagcache_cli

BASE_REVISION = "3f1c2a9d7b10"
REV_RE = re.compile(r"\b[0-9a-f]{12,}\b")  # Alembic rev ids are 12+ hex chars

# the log file would otherwise land in the user's log directory
NO_RECORDER = ["--no-flight-recorder"]


def _runner(url: str) -> CliRunner:
    return CliRunner(env={DB_CONNECTION_STR_ENV: url})


@pytest.mark.parametrize(
    "cmd",
    [["db", "current"], ["db", "history", "-i"], ["db", "upgrade"]],
)
def test_db_no_url(cmd):
    """db commands requiring a connection error out if the URL is not set."""
    result = _runner("").invoke(flagcache_cli, NO_RECORDER + cmd)
    assert result.exit_code == 1
    assert MISSING_DB_URL_MSG in result.output


def test_db_heads_without_url():
    """Listing heads needs no database."""
    result = _runner("").invoke(flagcache_cli, NO_RECORDER + ["db", "heads"])
    assert result.exit_code == 0, result.output
    assert BASE_REVISION in result.output


def test_new_user_initial_db_setup(tmp_path):
    """Simulate a new user setting up the flag tables in SQLite step by step.

    The intent is to cover the *typical onboarding flow*: verifying state at
    each step, declining and then confirming the first upgrade.
    """
    url = f"sqlite+pysqlite:///{tmp_path / 'flags.db'}"
    runner = _runner(url)

    # The database is new, so there is no current revision.
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "current"])
    assert result.exit_code == 0, result.output
    assert REV_RE.search(result.output) is None

    # The verbose flag shows which database was inspected.
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "current", "-v"])
    assert result.exit_code == 0, result.output
    assert "Current revision(s) for sqlite+pysqlite://" in result.output  # pylint: disable=magic-value-comparison

    # The history lists the base revision, but nothing is current yet.
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "history", "-i"])
    assert result.exit_code == 0, result.output
    assert BASE_REVISION in result.output
    assert "(current)" not in result.output  # pylint: disable=magic-value-comparison

    # The user starts an upgrade, reads the warning, and declines.
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "upgrade"], input="n\n")
    assert result.exit_code == 1, result.output
    assert UPGRADE_SCHEMA_WARNING in result.output
    assert "backup" in result.output.lower()  # pylint: disable=magic-value-comparison
    assert "Are you sure you want to proceed?" in result.output  # pylint: disable=magic-value-comparison

    # They check the SQL first; nothing is applied.
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "upgrade", "--sql"])
    assert result.exit_code == 0, result.output
    assert "CREATE TABLE flags" in result.output  # pylint: disable=magic-value-comparison
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "status"])
    assert "uninitialized" in result.output  # pylint: disable=magic-value-comparison
    assert UPGRADE_SCHEMA_INSTRUCTIONS in result.output

    # Now they confirm.
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "upgrade"], input="y\n")
    assert result.exit_code == 0, result.output
    assert "Upgrade complete!" in result.output  # pylint: disable=magic-value-comparison

    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "history", "-i"])
    assert result.exit_code == 0, result.output
    assert "(current)" in result.output  # pylint: disable=magic-value-comparison

    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "status"])
    assert result.exit_code == 0, result.output
    assert "Backend : sqlite" in result.output  # pylint: disable=magic-value-comparison
    assert f"Schema  : {BASE_REVISION} (up to date)" in result.output


def test_invalid_url_is_reported():
    """A malformed connection string is called out as such."""
    result = _runner("not a valid url").invoke(
        flagcache_cli, NO_RECORDER + ["db", "upgrade"]
    )
    assert result.exit_code != 0, result.output
    assert INVALID_URL_FORMAT_MSG in result.output


@pytest.mark.slow
def test_new_user_initial_db_setup_postgres(pg_url_base: str):
    """Simulate a user pointing FLAGCACHE at PostgreSQL, fixing a bad URL on the way.

    The flow confirms connectivity with ``flagcache db status``, addresses a
    connection issue, applies ``flagcache db upgrade``, and verifies the
    schema is up to date.
    """
    # The URL has the right format but names a database that does not exist.
    wrong_db = re.sub(r"/[^/]+$", "/wrongdb", pg_url_base)
    result = _runner(wrong_db).invoke(flagcache_cli, NO_RECORDER + ["db", "status"])
    assert result.exit_code == 1
    assert "Cannot connect to database" in result.output  # pylint: disable=magic-value-comparison
    assert CANNOT_CONNECT_MSG in result.output

    # With the right URL the database is reachable, but uninitialized.
    runner = _runner(pg_url_base)
    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "status"])
    assert result.exit_code == 0, result.output
    assert "uninitialized" in result.output  # pylint: disable=magic-value-comparison
    assert "Backend : postgresql" in result.output  # pylint: disable=magic-value-comparison
    assert "URL     : postgresql+psycopg://" in result.output  # pylint: disable=magic-value-comparison
    assert "***" in result.output  # password is masked
    assert UPGRADE_SCHEMA_INSTRUCTIONS in result.output

    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "upgrade", "--force"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(flagcache_cli, NO_RECORDER + ["db", "status"])
    assert result.exit_code == 0, result.output
    assert "Database reachable" in result.output  # pylint: disable=magic-value-comparison
    assert "up to date" in result.output  # pylint: disable=magic-value-comparison
