"""Helpers for parsing logger-level CLI options.

The ``-L/--logger-level`` option accepts NAME=LEVEL items, either repeated or
as one comma/space-separated string (the form used by the environment
variable). Items are merged over `DEFAULT_LIB_LEVELS`, which keeps the chatty
libraries the cache talks through (SQLAlchemy, Alembic, httpx, botocore)
quiet unless asked.
"""

import logging
import re

import click

DEFAULT_LIB_LEVELS = {
    "sqlalchemy": logging.WARNING,
    "alembic": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "botocore": logging.WARNING,
    "boto3": logging.WARNING,
}

_SEPARATORS = re.compile(r"[,\s]+")


def _normalize_items(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Flatten the option value into non-empty NAME=LEVEL items."""
    if not value:
        return []
    chunks = [value] if isinstance(value, str) else list(value)
    return [item for chunk in chunks for item in _SEPARATORS.split(chunk) if item]


def parse_level(level_str: str) -> int:
    """Convert a level name (``debug``, ``WARNING``...) to its numeric value.

    Raises:
        click.BadParameter: If the name is not a standard logging level.
    """
    lvl = logging.getLevelName(level_str.strip().upper())
    if not isinstance(lvl, int):
        raise click.BadParameter(f"Invalid log level: {level_str}")
    return lvl


def parse_log_level(
    ctx: click.Context,  # pylint: disable=unused-argument
    param: click.Parameter | None,  # pylint: disable=unused-argument
    value: str | list[str] | tuple[str, ...] | None,
) -> dict[str, int]:
    """Click callback that parses NAME=LEVEL pairs into a name->level dict.

    Args:
        ctx (click.Context): Click context (passed by Click, not used here).
        param (click.Parameter | None): Click parameter (not used here).
        value: The raw option value(s).

    Returns:
        dict[str, int]: `DEFAULT_LIB_LEVELS` updated with the parsed overrides.

    Raises:
        click.BadParameter: If an item is not NAME=LEVEL or LEVEL is invalid.
    """
    levels = dict(DEFAULT_LIB_LEVELS)
    for item in _normalize_items(value):
        name, sep, level_str = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected NAME=LEVEL, got {item!r}")
        levels[name.strip()] = parse_level(level_str)
    return levels
