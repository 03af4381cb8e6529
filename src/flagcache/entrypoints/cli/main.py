"""FLAGCACHE CLI entry point.

Defines the top-level ``flagcache`` command (via Click-Extra) and registers
its subcommand groups.

Available groups
- ``flagcache db``: forward-only management of the flag tables (upgrade/current/heads/history/status).
- ``flagcache cache``: one-shot refreshes of the evaluation cache (export/get/check).

Notes
- The CLI version is sourced from `flagcache.__version__` and displayed
  automatically by Click-Extra (``--version``).
- The backend is configured through ``FLAGCACHE_*`` environment variables
  (see `flagcache.config`).

Examples
    $ flagcache --version
    $ flagcache db upgrade
    $ FLAGCACHE_EVAL_ONLY_MODE=1 FLAGCACHE_DB_DRIVER=json_file \\
        FLAGCACHE_DB_CONNECTION_STR=flags.json flagcache cache check
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from platformdirs import user_log_dir

from flagcache import __version__
from flagcache.logging import FlightRecorder, console_handler, log_startup

from .cache import cache as cache_group
from .db import db as db_group
from .helpers import hyperlink
from .helpers.log_level_parser import DEFAULT_LIB_LEVELS, parse_log_level

if TYPE_CHECKING:
    from logging import Handler

logger = logging.getLogger(__name__)


HELP = """FLAGCACHE command-line interface.

    FLAGCACHE keeps an in-memory, read-optimized snapshot of a feature-flag
    dataset. Snapshots are loaded from a database or from a JSON envelope in a
    file, over HTTP, or in S3, and are swapped in atomically on every refresh.
    """


EPILOG = "\b\n" + "\n".join(
    [
        f"{click.style('See Also:', fg='blue', bold=True, underline=True)}",
        "  Flagr : " + hyperlink("https://openflagr.github.io/flagr/"),
    ]
)

DEFAULT_LOG_PATH = (
    Path(user_log_dir("flagcache", appauthor=False, ensure_exists=True)) / "latest.log"
)


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
    epilog=EPILOG,
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help=(
        "Increase the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    help=(
        "Decrease the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--debug/--no-debug",
    is_flag=True,
    help="Enable debug mode (source locations and timestamps on the console).",
    default=False,
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to log file (overrides default flight recorder path).",
    default=DEFAULT_LOG_PATH,
    envvar="FLAGCACHE_LOG_PATH",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "--flight-recorder-capacity",
    type=click.IntRange(min=1),
    default=2000,
    hidden=True,
    envvar="FLAGCACHE_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Capacity of the flight recorder (in number of log records).",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    is_flag=True,
    help=(
        "Enable the in-memory flight recorder. Keeps the last N log records "
        "(tunable via FLAGCACHE_FLIGHT_RECORDER_CAPACITY) at DEBUG granularity "
        "(unaffected by -v/-q) and writes them to --log-path when a WARNING/ERROR "
        "occurs, such as a failed refresh, or on clean exit if --force-flush is set."
    ),
    default=True,
    show_envvar=True,
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    is_flag=True,
    help=(
        "Force-flush the flight recorder buffer to --log-path on program exit. "
        "Normally the buffer only dumps on WARNING/ERROR; console output is unaffected."
    ),
    default=False,
    show_default=True,
    show_envvar=True,
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    envvar="FLAGCACHE_LOGGER_LEVELS",
    help=(
        "Set MINIMUM LEVEL for specific LOGGERS (NAME=LEVEL). This changes the "
        "logger's own level, so it applies to BOTH console and flight-recorder. "
        "Repeatable (e.g. -L httpx=INFO -L flagcache.adapters=DEBUG) or via "
        "FLAGCACHE_LOGGER_LEVELS (comma/space list)."
    ),
    default=tuple(f"{name}=WARNING" for name in DEFAULT_LIB_LEVELS),
    show_default=True,
    show_envvar=True,
)
@clickx.pass_context
def flagcache(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
) -> None:
    """FLAGCACHE command-line interface."""

    # 0) compute effective verbosity
    level = logging.WARNING - (10 * verbose_count) + (10 * quiet_count)
    level = max(logging.DEBUG, min(logging.CRITICAL, level))

    handlers: list[Handler] = []

    # 1) console
    use_color = ctx.color is not False  # None or True => allow color
    handlers.append(console_handler(level, debug=debug, color=use_color))

    # 2) flight recorder
    if flight_recorder:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            FlightRecorder(
                log_path,
                flight_recorder_capacity,
                flush_on_close=force_flush_flight_recorder,
            )
        )

    # 3) root logger captures everything; handlers filter
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    # 4) per-logger levels
    for name, lvl in logger_levels.items():
        logging.getLogger(name).setLevel(lvl)

    # 5) startup banner
    log_startup(
        logger,
        app_version=__version__,
        level=level,
        handlers=handlers,
        logger_levels=logger_levels,
    )

    # 6) flush the flight recorder and close files after the command returns
    ctx.call_on_close(logging.shutdown)


flagcache.add_command(db_group)
flagcache.add_command(cache_group)
