"""Background driver that keeps an `EvalCache` fresh."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from flagcache.interfaces.fetcher import RefreshCancelledError

if TYPE_CHECKING:
    from types import TracebackType

    from flagcache.service_layer.eval_cache import EvalCache

logger = logging.getLogger(__name__)


class PeriodicRefresher:
    """Refresh a cache every ``interval`` seconds on a daemon thread.

    `start()` refreshes once synchronously and lets any failure propagate, so
    a process never starts serving from an empty cache. After that, failures
    are logged and the cache keeps its last good snapshot until a later cycle
    succeeds.

    Example:
        >>> with PeriodicRefresher(cache, interval=3.0):
        ...     serve(cache)
    """

    def __init__(self, cache: EvalCache, interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.cache = cache
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Refresh once, then start the background thread.

        Raises:
            RuntimeError: If already started.
            Exception: Whatever the first refresh raised.
        """
        if self._thread is not None:
            raise RuntimeError("refresher already started")
        self.cache.refresh()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="flagcache-refresher", daemon=True
        )
        self._thread.start()
        logger.debug("Periodic refresh started (every %.1fs)", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        """Signal the thread to stop and wait for it.

        An in-flight refresh that has not installed yet is discarded.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Refresh thread did not stop within %ss", timeout)
            else:
                self._thread = None
        logger.debug("Periodic refresh stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.cache.refresh(cancel=self._stop)
            except RefreshCancelledError:
                break
            except Exception:  # pylint: disable=broad-exception-caught
                # already logged by the cache; keep serving the last snapshot
                self.failures += 1
                logger.debug("Refresh cycle failed", exc_info=True)

    def __enter__(self) -> PeriodicRefresher:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
