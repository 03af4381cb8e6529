"""Fetch flags from an envelope stored in a local JSON file."""

from __future__ import annotations

import logging
from pathlib import Path

from flagcache.adapters.envelope import DEFAULT_MAX_BYTES, EvalCacheJSON
from flagcache.domain.flag import Flag
from flagcache.interfaces.fetcher import FetchError, FlagFetcher

logger = logging.getLogger(__name__)


class JsonFileFetcher(FlagFetcher):
    """Read the whole flag set from ``path`` on every fetch.

    The file is reopened each time, so replacing it on disk (e.g. by an
    export job writing to a temp file and renaming) is picked up on the next
    refresh.
    """

    def __init__(self, path: str | Path, *, max_bytes: int = DEFAULT_MAX_BYTES):
        self.path = Path(path)
        self.max_bytes = max_bytes

    def fetch(self) -> list[Flag]:
        source = str(self.path)
        try:
            stream = self.path.open("rb")
        except FileNotFoundError as e:
            raise FetchError(source, "file not found") from e
        except OSError as e:
            raise FetchError(source, e.strerror or str(e)) from e

        try:
            envelope = EvalCacheJSON.read(
                stream, source=source, max_bytes=self.max_bytes
            )
        except OSError as e:
            raise FetchError(source, e.strerror or str(e)) from e

        logger.debug("Read %d flags from %s", len(envelope.flags), source)
        return envelope.flags

    def describe(self) -> str:
        return f"json_file {self.path}"
