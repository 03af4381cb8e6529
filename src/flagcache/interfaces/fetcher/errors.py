"""Exceptions raised while selecting a source backend and fetching flags."""


class FlagCacheError(Exception):
    """Base class for evaluation cache errors."""


class ConfigurationError(FlagCacheError):
    """Process configuration cannot be turned into a working backend.

    Fatal at startup and not retryable: the configuration has to change.
    """


class UnsupportedDriverError(ConfigurationError):
    """The configured driver name does not select any source backend.

    Attributes:
        driver (str): The unsupported driver name.
    """

    def __init__(self, driver: str):
        super().__init__(
            f"Failed to create evaluation cache fetcher. DB driver '{driver}' is not supported."
        )
        self.driver = driver


class FetchError(FlagCacheError):
    """Fetching flags from the source backend failed.

    Covers connectivity problems, timeouts, query failures, missing files and
    non-success HTTP responses. Transient: the refresh scheduler may retry.

    Attributes:
        source (str): Description of the backend location (path, URL, bucket/key, DB).
    """

    def __init__(self, source: str, reason: str):
        super().__init__(f"Failed to fetch flags from {source}: {reason}")
        self.source = source
        self.reason = reason


class DecodeError(FetchError):
    """The fetched payload is not a valid flags envelope."""


class RefreshCancelledError(FlagCacheError):
    """A refresh was cancelled before its snapshot could be installed."""
