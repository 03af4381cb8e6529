"""Fixtures for end-to-end CLI logging tests.

Registers a test-only ``log-demo`` command on the top-level ``flagcache``
group. It logs on the application's own namespace and on ``httpx``, one of the
backend libraries whose level is pinned to WARNING by default, so the tests
can see console verbosity, ``-L`` overrides and the flight recorder interact.
"""

import logging

import click
import pytest
from click.testing import CliRunner

from flagcache.entrypoints.cli.main import flagcache

# pylint: disable=redefined-outer-name

APP_LOGGER = "flagcache.demo"
LIB_LOGGER = "httpx"


@click.command()
def log_demo():
    """Log one message per level on the app logger, then a few on httpx."""
    app = logging.getLogger(APP_LOGGER)
    for level in (
        logging.DEBUG,
        logging.INFO,
        logging.WARNING,
        logging.ERROR,
        logging.CRITICAL,
    ):
        name = logging.getLevelName(level).lower()
        app.log(level, "demo %s message", name)
    lib = logging.getLogger(LIB_LOGGER)
    lib.debug("library debug message")
    lib.info("library info message")
    lib.warning("library warning message")
    app.debug("demo trailing debug message")


def _unregister(group: click.Group, name: str) -> None:
    """Drop `name` from the group and from Click-Extra's help sections."""
    group.commands.pop(name, None)
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for section in getattr(group, "_sections", []):
        getattr(section, "commands", {}).pop(name, None)


@pytest.fixture
def registered_log_demo():
    """Make ``flagcache log-demo`` available for one test."""
    flagcache.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        _unregister(flagcache, "log-demo")


@pytest.fixture
def runner():
    """A plain CliRunner."""
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside an isolated working directory."""
    with runner.isolated_filesystem():
        yield
