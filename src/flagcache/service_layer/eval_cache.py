"""The evaluation cache.

`EvalCache` holds the current `Snapshot` and answers lookups from it. A
refresh does all of its work (backend selection, fetch, preparation,
indexing) without holding the lock, then swaps the snapshot reference under
the write lock. Readers therefore see either the old generation or the new
one, never a mix, and never wait on I/O.

A failed refresh leaves the current snapshot in place and re-raises, so the
caller decides whether and when to retry. See `PeriodicRefresher` for the
usual driver.

Example:
    >>> cache = EvalCache(lambda: MemoryFetcher([Flag(id=1, key="a")]))
    >>> _ = cache.refresh()
    >>> cache.get_by_key("a").id
    1
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from flagcache.adapters.envelope import EvalCacheJSON
from flagcache.interfaces.fetcher import RefreshCancelledError
from flagcache.service_layer.snapshot import Snapshot, build_snapshot
from flagcache.utils.rwlock import ReadWriteLock

if TYPE_CHECKING:
    from flagcache.domain.flag import Flag
    from flagcache.interfaces.fetcher import FlagFetcher

logger = logging.getLogger(__name__)

FetcherFactory = Callable[[], "FlagFetcher"]


class EvalCache:
    """In-memory, read-optimized index of every flag.

    Args:
        fetcher_factory: Called once per refresh to select the backend, so
            configuration changes take effect on the next refresh.
    """

    def __init__(self, fetcher_factory: FetcherFactory):
        self._fetcher_factory = fetcher_factory
        self._lock = ReadWriteLock()
        # serializes refreshes so an older build cannot overwrite a newer one
        self._refresh_lock = threading.Lock()
        self._snapshot = Snapshot.empty()
        self._populated = False

    # --------------------------------------------------------------------- #
    # Refresh
    # --------------------------------------------------------------------- #

    def refresh(self, cancel: threading.Event | None = None) -> Snapshot:
        """Build a new snapshot and install it.

        Args:
            cancel: When set before the new snapshot is installed, the
                result is discarded.

        Returns:
            Snapshot: The newly installed snapshot.

        Raises:
            ConfigurationError: If no backend can be selected.
            FetchError: If the backend fails (includes `DecodeError`).
            PreparationError: If any flag fails preparation.
            RefreshCancelledError: If ``cancel`` was set before install.
        """
        with self._refresh_lock:
            started = time.monotonic()
            try:
                fetcher = self._fetcher_factory()
                flags = fetcher.fetch()
                snapshot = build_snapshot(flags)
            except Exception as e:
                logger.warning(
                    "Evaluation cache refresh failed, keeping the current snapshot: %s",
                    e,
                )
                raise

            with self._lock.write():
                if cancel is not None and cancel.is_set():
                    logger.info("Evaluation cache refresh cancelled before install")
                    raise RefreshCancelledError("refresh cancelled before install")
                self._snapshot = snapshot
                self._populated = True

            logger.info(
                "Evaluation cache refreshed from %s: %d flags (%d by ID, %d by key) in %.3fs",
                fetcher.describe(),
                len(flags),
                len(snapshot.by_id),
                len(snapshot.by_key),
                time.monotonic() - started,
            )
            return snapshot

    # --------------------------------------------------------------------- #
    # Lookups
    # --------------------------------------------------------------------- #

    @property
    def snapshot(self) -> Snapshot:
        """The current snapshot; its two maps always belong together."""
        with self._lock.read():
            return self._snapshot

    @property
    def populated(self) -> bool:
        """True once any refresh has been installed."""
        with self._lock.read():
            return self._populated

    def get_by_id(self, flag_id: int | str) -> Flag | None:
        """Return the flag with this ID, or None."""
        with self._lock.read():
            return self._snapshot.by_id.get(str(flag_id))

    def get_by_key(self, key: str) -> Flag | None:
        """Return the flag with this key, or None."""
        with self._lock.read():
            return self._snapshot.by_key.get(key)

    def get_by_key_or_id(self, key_or_id: int | str) -> Flag | None:
        """Look up by ID first, then by key.

        ``7`` and ``"7"`` both find the flag with ID 7; any other string is
        tried as a key.
        """
        value = str(key_or_id)
        with self._lock.read():
            flag = self._snapshot.by_id.get(value)
            if flag is None:
                flag = self._snapshot.by_key.get(value)
            return flag

    # --------------------------------------------------------------------- #
    # Export
    # --------------------------------------------------------------------- #

    def export(self) -> list[Flag]:
        """Deep copies of every flag indexed by ID, ordered by ID."""
        with self._lock.read():
            flags = list(self._snapshot.by_id.values())
        # snapshot objects are immutable once installed, copying can happen unlocked
        return [copy.deepcopy(flag) for flag in sorted(flags, key=lambda f: f.id)]

    def export_json(self) -> EvalCacheJSON:
        """`export()` wrapped in the JSON envelope."""
        return EvalCacheJSON(flags=self.export(), source="eval-cache")
