"""Wire the evaluation cache to its configured source backend."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flagcache import config
from flagcache.adapters.db.engine import make_engine
from flagcache.adapters.fetchers import EngineProvider, new_fetcher
from flagcache.service_layer.eval_cache import EvalCache
from flagcache.service_layer.refresher import PeriodicRefresher

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from flagcache.config import Settings


@dataclass(frozen=True)
class AppContainer:
    """A class to hold application wiring constants."""

    settings: Settings
    eval_cache: EvalCache

    def refresher(self) -> PeriodicRefresher:
        """A refresher for the cache using the configured interval."""
        return PeriodicRefresher(self.eval_cache, self.settings.refresh_interval)


def build_engine_provider(url: str) -> EngineProvider:
    """Return a provider that creates the Engine on first use and reuses it.

    The Engine owns the connection pool, so every refresh of a process goes
    through the same one.
    """
    lock = threading.Lock()
    engine: Engine | None = None

    def provider() -> Engine:
        nonlocal engine
        with lock:
            if engine is None:
                engine = make_engine(url)
            return engine

    return provider


def build_eval_cache(
    settings: Settings, engine_provider: EngineProvider | None = None
) -> EvalCache:
    """Build an evaluation cache that selects its backend from `settings`."""
    if engine_provider is None:
        engine_provider = build_engine_provider(settings.db_connection_str)

    def fetcher_factory():
        return new_fetcher(settings, engine_provider)

    return EvalCache(fetcher_factory)


def bootstrap(settings: Settings | None = None) -> AppContainer:
    """Read settings from the environment (unless given) and build the app."""
    if settings is None:
        settings = config.load_settings()
    return AppContainer(settings=settings, eval_cache=build_eval_cache(settings))
