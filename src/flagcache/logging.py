"""Console and flight-recorder logging for the flagcache CLI.

Two handlers hang off the root logger:

- a Rich console handler on stderr, filtered by ``-v``/``-q``, which tags
  records from backend libraries (``[httpx]``, ``[botocore]``...) so they
  stand apart from the cache's own messages;
- a `FlightRecorder`, which keeps the most recent records at DEBUG in memory
  and only writes them out when something goes wrong (a failed refresh logs
  a WARNING) or, if asked, when the process exits.

`log_startup` writes a one-line banner plus DEBUG diagnostics that end up in
the flight recorder, so a dumped log says which versions and settings
produced it.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from importlib.metadata import PackageNotFoundError, version
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

PROJECT_PREFIX = "flagcache"

# Distributions behind the database and eval-only backends, by display name.
BACKEND_DISTRIBUTIONS = {
    "Alembic": "alembic",
    "SQLAlchemy": "SQLAlchemy",
    "httpx": "httpx",
    "boto3": "boto3",
}

RECORDER_FORMAT = (
    "[%(asctime)s] [%(process)d:%(threadName)s] "
    "%(levelname)s %(name)s:%(lineno)d: %(message)s"
)

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


class LibraryPrefixFilter(logging.Filter):
    """Tag each record with the top-level package of a non-flagcache logger.

    Sets ``record.prefix`` to ``"[httpx]"`` for ``httpx._client``, and to the
    empty string for flagcache's own loggers. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        package = record.name.partition(".")[0]
        record.prefix = "" if package == PROJECT_PREFIX else f"[{package}]"
        return True


def console_handler(
    level: int = logging.WARNING, *, debug: bool = False, color: bool = True
) -> RichHandler:
    """Build the stderr console handler.

    Args:
        level: Console threshold; ignored (DEBUG) when ``debug`` is set.
        debug: Show timestamps, logger names and clickable ``file:line``.
        color: False disables color, following click-extra's ``--no-color``.

    Returns:
        RichHandler: The handler, ready to attach to the root logger.
    """
    color_system: ColorSystem | None = "auto" if color else None
    handler = RichHandler(
        level=logging.DEBUG if debug else level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug,
        enable_link_path=debug,
    )
    if debug:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(prefix)s %(message)s"))
        handler.addFilter(LibraryPrefixFilter())
    return handler


class FlightRecorder(MemoryHandler):
    """Buffer recent records and dump them to ``path`` on the first WARNING.

    The file is truncated when the recorder is created, so it only ever holds
    the current run. Records are buffered regardless of console verbosity;
    only per-logger levels (``-L``) reduce what is kept.

    Args:
        path: File the buffer is written to.
        capacity: Records held before the buffer is written out anyway.
        flush_on_close: Also write the buffer when the process exits cleanly.
    """

    def __init__(
        self, path: Path, capacity: int = 2000, *, flush_on_close: bool = False
    ):
        target = logging.FileHandler(path, mode="w", encoding="utf-8")
        target.setLevel(logging.DEBUG)
        target.setFormatter(logging.Formatter(RECORDER_FORMAT))
        super().__init__(
            capacity,
            flushLevel=logging.WARNING,
            target=target,
            flushOnClose=flush_on_close,
        )
        self.path = Path(path)

    def describe(self) -> str:
        return (
            f"path={self.path}, capacity={self.capacity}, "
            f"flush_on_close={self.flushOnClose}"
        )


def backend_versions() -> dict[str, str]:
    """Installed versions of the backend libraries, keyed by display name."""
    versions = {}
    for name, distribution in BACKEND_DISTRIBUTIONS.items():
        try:
            versions[name] = version(distribution)
        except PackageNotFoundError:
            versions[name] = "<not installed>"
    return versions


def log_startup(
    logger: logging.Logger,
    *,
    app_version: str,
    level: int,
    handlers: Iterable[logging.Handler],
    logger_levels: Mapping[str, int],
) -> None:
    """Log the startup banner (INFO) and environment diagnostics (DEBUG).

    Flight-recorder settings are read from the `FlightRecorder` among
    ``handlers``, if there is one.

    Args:
        logger: Logger that emits the messages.
        app_version: flagcache version shown in the banner.
        level: Console threshold.
        handlers: Handlers installed on the root logger.
        logger_levels: Per-logger level overrides in effect.
    """
    handlers = list(handlers)
    recorder = next((h for h in handlers if isinstance(h, FlightRecorder)), None)

    logger.info(
        "FLAGCACHE %s: console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(level),
        "ON" if recorder is not None else "OFF",
    )

    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("PID: %s", os.getpid())
    logger.debug("CWD: %s", Path.cwd())
    for name, installed in backend_versions().items():
        logger.debug("%s: %s", name, installed)
    logger.debug("Handlers: %s", [type(h).__name__ for h in handlers])
    if recorder is not None:
        logger.debug("Flight recorder: %s", recorder.describe())
    logger.debug(
        "Per-logger overrides: %s",
        {name: logging.getLevelName(lvl) for name, lvl in logger_levels.items()}
        or "<none>",
    )
