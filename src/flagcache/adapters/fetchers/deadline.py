"""Whole-transfer deadlines for streamed payloads.

Client libraries bound each network phase separately: a read timeout restarts
with every chunk, so a peer that drips bytes can hold a transfer open far
longer than the configured timeout. `Deadline` bounds the transfer as a whole.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator

from flagcache.interfaces.fetcher import FetchError


class Deadline:
    """A point in time ``timeout`` seconds after construction.

    Args:
        timeout: Seconds allowed for the whole transfer.
        source: Where the payload comes from, for the error.
    """

    def __init__(self, timeout: float, source: str):
        self.timeout = timeout
        self.source = source
        self._expires_at = time.monotonic() + timeout

    def check(self) -> None:
        """Raise `FetchError` once the deadline has passed."""
        if time.monotonic() >= self._expires_at:
            raise FetchError(self.source, f"timed out after {self.timeout}s")

    def guard(self, chunks: Iterable[bytes]) -> Iterator[bytes]:
        """Yield `chunks`, checking the deadline as each one arrives."""
        for chunk in chunks:
            self.check()
            yield chunk
