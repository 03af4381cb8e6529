"""The `FlagFetcher` port.

A fetcher produces the full list of flags from one source backend. It has no
side effects on the cache: it either returns every flag or raises.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flagcache.domain.flag import Flag


class FlagFetcher(abc.ABC):
    """Source backend for the evaluation cache."""

    @abc.abstractmethod
    def fetch(self) -> list[Flag]:
        """Fetch every flag from the backend.

        Returns:
            list[Flag]: Unprepared flags, in backend order.

        Raises:
            FetchError: If the backend is unreachable, times out, or fails.
            DecodeError: If the backend returned a malformed payload.
        """

    def describe(self) -> str:
        """Short, credential-free description of the backend for logs."""
        return type(self).__name__
