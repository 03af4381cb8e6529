"""Snapshots of the flag dataset and the builder that produces them.

A `Snapshot` is one generation of the cache: two read-only index maps that
point at the same prepared `Flag` objects.

- ``by_id``: ``str(flag.id)`` → flag, for every flag with a non-zero ID.
- ``by_key``: ``flag.key`` → flag, for every flag with a non-empty key.

Snapshots are never mutated after `build_snapshot` returns; the cache
replaces them wholesale.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType

from flagcache.domain.flag import Flag

_EMPTY: Mapping[str, Flag] = MappingProxyType({})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Snapshot:
    """An immutable, indexed generation of the flag dataset."""

    by_id: Mapping[str, Flag] = field(default_factory=lambda: _EMPTY)
    by_key: Mapping[str, Flag] = field(default_factory=lambda: _EMPTY)
    created_at: datetime = field(default_factory=_utcnow, compare=False)

    @classmethod
    def empty(cls) -> Snapshot:
        """Return a snapshot with no entries."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """True when no flag is reachable by ID or key."""
        return not self.by_id and not self.by_key

    def flags(self) -> list[Flag]:
        """Every distinct indexed flag, ID-indexed ones first."""
        seen: set[int] = set()
        result: list[Flag] = []
        for flag in (*self.by_id.values(), *self.by_key.values()):
            if id(flag) not in seen:
                seen.add(id(flag))
                result.append(flag)
        return result


def build_snapshot(flags: Iterable[Flag]) -> Snapshot:
    """Prepare every flag and index it by ID and key.

    Flags are prepared in place. Later duplicates of an ID or key replace
    earlier ones. A flag with neither ID nor key is prepared but unreachable.

    Args:
        flags: Freshly fetched flags; ownership passes to the snapshot.

    Returns:
        Snapshot: A new, fully prepared snapshot.

    Raises:
        PreparationError: On the first flag that fails preparation; no
            partial snapshot is produced.
    """
    by_id: dict[str, Flag] = {}
    by_key: dict[str, Flag] = {}

    for flag in flags:
        flag.prepare_evaluation()
        if flag.id != 0:
            by_id[str(flag.id)] = flag
        if flag.key != "":
            by_key[flag.key] = flag

    return Snapshot(by_id=MappingProxyType(by_id), by_key=MappingProxyType(by_key))
