"""JSON envelope for transporting the evaluation cache's flags.

The envelope is the byte-level container used by the file, HTTP and S3
backends, and by the cache export:

    {"Flags": [ {"ID": 1, "Key": "a", ...}, ... ]}

The ``Flags`` member is required (``null`` means no flags) and, as with
Go's encoding/json, its name is matched case-insensitively.

Reading
-------
`EvalCacheJSON.read()` consumes a binary stream in chunks, **always** closes
it (including on decode failure), and refuses payloads larger than
``max_bytes``. `read_chunks()` does the same for an iterator of byte chunks,
as produced by streaming HTTP bodies.

Writing
-------
`EvalCacheJSON.dumps()` renders a deterministic shape: flags sorted by ID,
fixed key order, UTF-8.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import BinaryIO

from flagcache.domain.flag import Flag
from flagcache.interfaces.fetcher import DecodeError

FLAGS_KEY = "Flags"
CHUNK_SIZE = 1024 * 1024
DEFAULT_MAX_BYTES = 64 * 1024 * 1024


@dataclass
class EvalCacheJSON:
    """Serialization envelope around a list of flags."""

    flags: list[Flag] = field(default_factory=list)
    source: str = field(default="<payload>", compare=False)

    # --- reading ---

    @classmethod
    def read(
        cls,
        stream: BinaryIO,
        *,
        source: str = "<stream>",
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> EvalCacheJSON:
        """Read and decode an envelope from a binary stream, then close it.

        Args:
            stream: Binary file-like object positioned at the start of the payload.
            source: Description of where the stream came from, for errors.
            max_bytes: Largest payload accepted.

        Returns:
            EvalCacheJSON: The decoded envelope.

        Raises:
            DecodeError: If the payload is too large or malformed.
            OSError: Underlying I/O errors while reading.
        """
        try:
            return cls.read_chunks(
                iter(lambda: stream.read(CHUNK_SIZE), b""),
                source=source,
                max_bytes=max_bytes,
            )
        finally:
            stream.close()

    @classmethod
    def read_chunks(
        cls,
        chunks: Iterable[bytes],
        *,
        source: str = "<stream>",
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> EvalCacheJSON:
        """Collect byte chunks up to `max_bytes` and decode them."""
        buffer = bytearray()
        for chunk in chunks:
            buffer.extend(chunk)
            if len(buffer) > max_bytes:
                raise DecodeError(source, f"payload exceeds {max_bytes} bytes")
        return cls.loads(bytes(buffer), source=source)

    @classmethod
    def loads(cls, data: bytes | str, *, source: str = "<payload>") -> EvalCacheJSON:
        """Decode an envelope from bytes or text.

        Raises:
            DecodeError: On invalid UTF-8/JSON, a missing or non-list ``Flags``
                member, or flag fields of the wrong type.
        """
        try:
            document = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(source, f"invalid JSON: {e}") from e

        if not isinstance(document, Mapping):
            raise DecodeError(source, "top-level JSON value must be an object")
        member = _flags_member(document)
        if member is None:
            raise DecodeError(source, f"missing {FLAGS_KEY!r} member")
        flags = document[member]
        if flags is None:
            # a Go nil slice serializes as null
            flags = []
        if not isinstance(flags, list):
            raise DecodeError(source, f"{FLAGS_KEY!r} must be an array")

        decoded: list[Flag] = []
        for position, item in enumerate(flags):
            if not isinstance(item, Mapping):
                raise DecodeError(source, f"flag #{position} is not an object")
            try:
                decoded.append(Flag.from_wire(item))
            except TypeError as e:
                raise DecodeError(source, f"flag #{position}: {e}") from e
        return cls(flags=decoded, source=source)

    # --- writing ---

    def to_wire(self) -> dict[str, list[dict]]:
        """Return the envelope as plain JSON-compatible data."""
        ordered = sorted(self.flags, key=lambda f: (f.id, f.key))
        return {FLAGS_KEY: [flag.to_wire() for flag in ordered]}

    def dumps(self, *, indent: int | None = None) -> bytes:
        """Render the envelope as UTF-8 JSON bytes."""
        return json.dumps(self.to_wire(), indent=indent, ensure_ascii=False).encode(
            "utf-8"
        )

    def write(self, stream: BinaryIO, *, indent: int | None = None) -> int:
        """Write the rendered envelope to a binary stream (not closed here).

        Returns:
            int: Number of bytes written.
        """
        data = self.dumps(indent=indent)
        stream.write(data)
        return len(data)


def _flags_member(document: Mapping) -> str | None:
    """Name of the flags member: ``Flags`` exactly, else any case variant of it."""
    if FLAGS_KEY in document:
        return FLAGS_KEY
    wanted = FLAGS_KEY.casefold()
    for name in document:
        if isinstance(name, str) and name.casefold() == wanted:
            return name
    return None
