"""Fetch flags from an envelope stored as an S3 object.

The connection string is a whitespace-separated list of ``name=value`` pairs::

    region=us-east-1 bucket=flags key=prod/flags.json
    region=us-east-1 bucket=flags key=flags.json endpoint_url=http://minio:9000 retries=2

``bucket`` and ``key`` are required. Credentials are not part of the
connection string; boto3 resolves them through its usual chain
(environment, shared config, instance role).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from flagcache.adapters.envelope import CHUNK_SIZE, DEFAULT_MAX_BYTES, EvalCacheJSON
from flagcache.domain.flag import Flag
from flagcache.interfaces.fetcher import ConfigurationError, FetchError, FlagFetcher

from .deadline import Deadline

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 59.0
_KNOWN_PARAMS = frozenset({"region", "bucket", "key", "endpoint_url", "retries"})


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 connection string."""

    bucket: str
    key: str
    region: str | None = None
    endpoint_url: str | None = None
    retries: int | None = None

    @classmethod
    def parse(cls, connection_str: str) -> S3Location:
        """Parse ``name=value`` pairs into an `S3Location`.

        Raises:
            ConfigurationError: On malformed pairs, unknown or duplicate names,
                a non-integer ``retries``, or a missing ``bucket``/``key``.
        """
        params: dict[str, str] = {}
        for token in connection_str.split():
            name, sep, value = token.partition("=")
            if not sep or not name or not value:
                raise ConfigurationError(
                    f"S3 connection string: expected name=value, got {token!r}"
                )
            if name not in _KNOWN_PARAMS:
                raise ConfigurationError(
                    f"S3 connection string: unknown parameter {name!r}"
                )
            if name in params:
                raise ConfigurationError(
                    f"S3 connection string: duplicate parameter {name!r}"
                )
            params[name] = value

        missing = [name for name in ("bucket", "key") if name not in params]
        if missing:
            raise ConfigurationError(
                f"S3 connection string is missing {', '.join(missing)}"
            )

        retries = None
        if "retries" in params:
            try:
                retries = int(params["retries"])
            except ValueError as e:
                raise ConfigurationError(
                    f"S3 connection string: retries must be an integer, "
                    f"got {params['retries']!r}"
                ) from e

        return cls(
            bucket=params["bucket"],
            key=params["key"],
            region=params.get("region"),
            endpoint_url=params.get("endpoint_url"),
            retries=retries,
        )

    def __str__(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


class S3Fetcher(FlagFetcher):
    """``GetObject`` the envelope from S3 on every fetch.

    Connect and read timeouts both equal ``timeout``, and the body download
    as a whole is bounded by it too (see `Deadline`). Path-style addressing
    is used so that S3-compatible stores (MinIO, LocalStack) work with a
    plain ``endpoint_url``.

    Args:
        location: Parsed connection string.
        timeout: Seconds allowed to connect and between reads.
        max_bytes: Largest accepted object.
        client: Optional preconfigured S3 client (tests pass a stubbed one).
    """

    def __init__(
        self,
        location: S3Location,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        client: Any = None,
    ):
        self.location = location
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._client = client

    @classmethod
    def from_connection_str(cls, connection_str: str, **kwargs: Any) -> S3Fetcher:
        """Build a fetcher from an unparsed connection string."""
        return cls(S3Location.parse(connection_str), **kwargs)

    @property
    def client(self) -> Any:
        if self._client is None:
            config_kwargs: dict[str, Any] = {
                "connect_timeout": self.timeout,
                "read_timeout": self.timeout,
                "s3": {"addressing_style": "path"},
            }
            if self.location.retries is not None:
                config_kwargs["retries"] = {"max_attempts": self.location.retries}
            self._client = boto3.client(
                "s3",
                region_name=self.location.region,
                endpoint_url=self.location.endpoint_url,
                config=Config(**config_kwargs),
            )
        return self._client

    def fetch(self) -> list[Flag]:
        source = str(self.location)
        deadline = Deadline(self.timeout, source)
        try:
            response = self.client.get_object(
                Bucket=self.location.bucket, Key=self.location.key
            )
            body = response["Body"]
            try:
                envelope = EvalCacheJSON.read_chunks(
                    deadline.guard(body.iter_chunks(CHUNK_SIZE)),
                    source=source,
                    max_bytes=self.max_bytes,
                )
            finally:
                body.close()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "unknown")
            raise FetchError(source, f"S3 error {code}") from e
        except BotoCoreError as e:
            raise FetchError(source, str(e)) from e

        logger.debug("Fetched %d flags from %s", len(envelope.flags), source)
        return envelope.flags

    def describe(self) -> str:
        return f"json_s3 {self.location}"
