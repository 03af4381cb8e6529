"""FLAGCACHE Fetcher Interface Package"""

from .errors import (
    ConfigurationError,
    DecodeError,
    FetchError,
    FlagCacheError,
    RefreshCancelledError,
    UnsupportedDriverError,
)
from .fetcher import FlagFetcher

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "FetchError",
    "FlagCacheError",
    "FlagFetcher",
    "RefreshCancelledError",
    "UnsupportedDriverError",
]
