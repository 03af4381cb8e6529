"""In-memory FlagFetcher implementation for testing purposes."""

from __future__ import annotations

import copy
from collections.abc import Iterable

from flagcache.domain.flag import Flag
from flagcache.interfaces.fetcher import FlagFetcher


class MemoryFetcher(FlagFetcher):
    """Serve a fixed list of flags, or fail with a configured exception.

    Every `fetch()` returns fresh deep copies, so callers (and the snapshot
    builder, which prepares flags in place) never share state between
    refreshes.
    """

    def __init__(self, flags: Iterable[Flag] = (), error: Exception | None = None):
        self.flags: list[Flag] = list(flags)
        self.error = error
        self.calls = 0

    def fetch(self) -> list[Flag]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.flags)

    def describe(self) -> str:
        return f"memory ({len(self.flags)} flags)"
