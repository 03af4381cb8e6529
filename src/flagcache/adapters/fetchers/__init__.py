"""Source backends for the evaluation cache and the selector that picks one.

| Mode       | Driver      | Fetcher           | Connection string            |
|------------|-------------|-------------------|------------------------------|
| database   | sqlite,     | `DbFetcher`       | SQLAlchemy URL               |
|            | postgres,   |                   |                              |
|            | mysql       |                   |                              |
| eval-only  | json_file   | `JsonFileFetcher` | file path                    |
| eval-only  | json_http   | `JsonHttpFetcher` | http(s) URL                  |
| eval-only  | json_s3     | `S3Fetcher`       | ``region=.. bucket=.. key=..``|
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy.exc import ArgumentError

from flagcache.adapters.db.dialects import DialectName, UnsupportedDialect
from flagcache.adapters.db.engine import make_engine
from flagcache.interfaces.fetcher import (
    ConfigurationError,
    FlagFetcher,
    UnsupportedDriverError,
)

from .db import DbFetcher
from .json_file import JsonFileFetcher
from .json_http import JsonHttpFetcher
from .memory import MemoryFetcher
from .s3 import S3Fetcher, S3Location

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from flagcache.config import Settings

JSON_FILE_DRIVER = "json_file"
JSON_HTTP_DRIVER = "json_http"
JSON_S3_DRIVER = "json_s3"

EngineProvider = Callable[[], "Engine"]

__all__ = [
    "DbFetcher",
    "EngineProvider",
    "JSON_FILE_DRIVER",
    "JSON_HTTP_DRIVER",
    "JSON_S3_DRIVER",
    "JsonFileFetcher",
    "JsonHttpFetcher",
    "MemoryFetcher",
    "S3Fetcher",
    "S3Location",
    "new_fetcher",
]


def new_fetcher(
    settings: Settings, engine_provider: EngineProvider | None = None
) -> FlagFetcher:
    """Select and construct the fetcher for the current settings.

    Nothing is fetched here; construction only validates configuration.

    Args:
        settings: Process settings.
        engine_provider: Returns the Engine for database mode. Defaults to
            creating one from ``settings.db_connection_str``; long-running
            processes should pass a provider that reuses a single Engine.

    Returns:
        FlagFetcher: The backend for this refresh.

    Raises:
        UnsupportedDriverError: If ``settings.db_driver`` selects no backend.
        ConfigurationError: If the database URL does not match the driver, or
            the S3 connection string is malformed.
    """
    if not settings.eval_only_mode:
        return _new_db_fetcher(settings, engine_provider)

    driver = settings.db_driver
    if driver == JSON_FILE_DRIVER:
        return JsonFileFetcher(
            settings.db_connection_str, max_bytes=settings.max_payload_bytes
        )
    if driver == JSON_HTTP_DRIVER:
        return JsonHttpFetcher(
            settings.db_connection_str,
            timeout=settings.refresh_timeout,
            max_bytes=settings.max_payload_bytes,
        )
    if driver == JSON_S3_DRIVER:
        return S3Fetcher.from_connection_str(
            settings.db_connection_str,
            timeout=settings.refresh_timeout,
            max_bytes=settings.max_payload_bytes,
        )
    raise UnsupportedDriverError(driver)


def _new_db_fetcher(
    settings: Settings, engine_provider: EngineProvider | None
) -> DbFetcher:
    try:
        expected = DialectName.from_string(settings.db_driver)
    except UnsupportedDialect as e:
        raise UnsupportedDriverError(settings.db_driver) from e

    try:
        if engine_provider is None:
            engine = make_engine(settings.db_connection_str)
        else:
            engine = engine_provider()
    except ArgumentError as e:
        raise ConfigurationError(f"Invalid database connection string: {e}") from e

    fetcher = DbFetcher(engine)
    if fetcher.dialect is not expected:
        raise ConfigurationError(
            f"DB driver '{settings.db_driver}' does not match the "
            f"{fetcher.dialect.value} connection string"
        )
    return fetcher
