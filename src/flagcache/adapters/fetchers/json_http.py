"""Fetch flags from an envelope served over HTTP(S)."""

from __future__ import annotations

import logging

import httpx

from flagcache.adapters.envelope import DEFAULT_MAX_BYTES, EvalCacheJSON
from flagcache.domain.flag import Flag
from flagcache.interfaces.fetcher import FetchError, FlagFetcher

from .deadline import Deadline

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 59.0


class JsonHttpFetcher(FlagFetcher):
    """``GET`` the envelope from ``url`` on every fetch.

    Connecting and each read are bounded by ``timeout`` seconds, and so is
    the transfer as a whole (see `Deadline`). Redirects are followed; any
    non-2xx final response is a `FetchError`. The body is streamed and
    abandoned as soon as it grows past ``max_bytes``.

    Args:
        url: Absolute ``http://`` or ``https://`` URL of the envelope.
        timeout: Seconds allowed for the request.
        max_bytes: Largest accepted body.
        transport: Optional httpx transport (tests pass `httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._transport = transport

    def fetch(self) -> list[Flag]:
        deadline = Deadline(self.timeout, self.url)
        try:
            with httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                with client.stream("GET", self.url) as response:
                    response.raise_for_status()
                    envelope = EvalCacheJSON.read_chunks(
                        deadline.guard(response.iter_bytes()),
                        source=self.url,
                        max_bytes=self.max_bytes,
                    )
        except httpx.HTTPStatusError as e:
            raise FetchError(
                self.url, f"HTTP {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.TimeoutException as e:
            raise FetchError(self.url, f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise FetchError(self.url, str(e) or type(e).__name__) from e

        logger.debug("Fetched %d flags from %s", len(envelope.flags), self.url)
        return envelope.flags

    def describe(self) -> str:
        return f"json_http {self.url}"
