"""Portable column types for the flag tables.

- `BIGINT_PK`: BIGINT primary keys, INTEGER on SQLite so rowid aliasing and
  autoincrement keep working.
- `PORTABLE_JSON`: JSON column (JSONB on PostgreSQL) for variant attachments.
- `UTCDateTime`: timezone-aware UTC timestamps for the audit/soft-delete columns.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import DateTime, TypeDecorator

from flagcache.adapters.db.dialects import DialectName

if TYPE_CHECKING:
    from sqlalchemy.engine.interfaces import Dialect

__all__ = ["BIGINT_PK", "UTCDateTime", "PORTABLE_JSON"]


BIGINT_PK = BigInteger().with_variant(Integer(), "sqlite")

PORTABLE_JSON = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)


class UTCDateTime(TypeDecorator[datetime]):  # pylint: disable=too-many-ancestors
    """Timezone-aware UTC datetime.

    Values are normalized to UTC on the way in and come back as aware
    datetimes. Naive input is taken to already be UTC. SQLite and MySQL have
    no timezone-aware column type, so they store naive UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    _NAIVE_STORAGE = frozenset({DialectName.SQLITE.value, DialectName.MYSQL.value})

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name in self._NAIVE_STORAGE:
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if not isinstance(value, datetime):
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_literal_param(self, value: datetime | None, dialect: Dialect) -> Any:
        return self.process_bind_param(value, dialect)

    @property
    def python_type(self) -> type[datetime]:
        return datetime
