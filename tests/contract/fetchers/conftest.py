"""Fixtures for FlagFetcher contract tests.

`flag_source` is parametrized over every backend. It returns a loader: call
it with a list of flags to publish them through that backend, and get back a
fetcher reading them.
"""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable

import httpx
import pytest
from botocore.response import StreamingBody

from flagcache.adapters.fetchers import (
    DbFetcher,
    JsonFileFetcher,
    JsonHttpFetcher,
    MemoryFetcher,
    S3Fetcher,
    S3Location,
)
from flagcache.domain.flag import Flag
from flagcache.interfaces.fetcher import FlagFetcher
from tests.fixtures.datagen import envelope_bytes, insert_flags

FlagSource = Callable[[Iterable[Flag]], FlagFetcher]

EXPORT_URL = "http://flags.example.test/api/v1/export/eval_cache/json"


class FakeS3Client:
    """Serves one object per fetch, like `get_object` on a real bucket."""

    def __init__(self, bucket: str, key: str, payload: bytes):
        self.objects = {(bucket, key): payload}

    def get_object(self, Bucket: str, Key: str):  # pylint: disable=invalid-name
        """Return the stored object with a fresh streaming body."""
        payload = self.objects[(Bucket, Key)]
        return {"Body": StreamingBody(io.BytesIO(payload), len(payload))}


@pytest.fixture(params=["memory", "json_file", "json_http", "json_s3", "db_sqlite"])
def flag_source(request: pytest.FixtureRequest, tmp_path) -> FlagSource:
    """Return a loader that publishes flags through the requested backend.

    Supported params:
      - `"memory"` → MemoryFetcher
      - `"json_file"` → JsonFileFetcher over a temp file
      - `"json_http"` → JsonHttpFetcher over `httpx.MockTransport`
      - `"json_s3"` → S3Fetcher over an in-process S3 client
      - `"db_sqlite"` → DbFetcher over a migrated SQLite file
    """

    def load(flags: Iterable[Flag]) -> FlagFetcher:
        flags = list(flags)
        match request.param:
            case "memory":
                return MemoryFetcher(flags)
            case "json_file":
                path = tmp_path / "flags.json"
                path.write_bytes(envelope_bytes(flags))
                return JsonFileFetcher(path)
            case "json_http":
                payload = envelope_bytes(flags)
                transport = httpx.MockTransport(
                    lambda request: httpx.Response(200, content=payload)
                )
                return JsonHttpFetcher(EXPORT_URL, transport=transport)
            case "json_s3":
                location = S3Location(bucket="flags", key="flags.json")
                client = FakeS3Client("flags", "flags.json", envelope_bytes(flags))
                return S3Fetcher(location, client=client)
            case "db_sqlite":
                engine = request.getfixturevalue("sqlite_engine_file")
                with engine.begin() as conn:
                    insert_flags(conn, flags)
                return DbFetcher(engine)
            case _:
                raise ValueError(f"unknown flag source: {request.param}")

    return load
