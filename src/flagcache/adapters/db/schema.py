"""Flag tables read by the database fetcher.

The flag management service owns these tables; the evaluation cache only
reads them. Every entity table carries audit timestamps and a nullable
``deleted_at`` soft-delete marker; rows with ``deleted_at`` set are invisible
to the cache.

| Table           | Parent          | Notes                                   |
|-----------------|-----------------|-----------------------------------------|
| flags           |                 | ``key`` unique, NULL when unset          |
| segments        | flags           | evaluated in ``rank`` order              |
| constraints     | segments        | ``value`` is a JSON literal as text      |
| distributions   | segments        | ``percent`` per variant, sums to 100     |
| variants        | flags           | ``attachment`` is a JSON object          |
| tags            |                 | ``value`` unique                         |
| flags_tags      | flags, tags     | many-to-many association                 |

The schema is created by the packaged Alembic migrations (``flagcache db upgrade``).
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Identity,
    Index,
    Integer,
    String,
    Table,
    Text,
    false,
    text,
)

from flagcache.adapters.db.metadata import metadata
from flagcache.adapters.db.sa_types import BIGINT_PK, PORTABLE_JSON, UTCDateTime

__all__ = [
    "constraints",
    "distributions",
    "flags",
    "flags_tags",
    "segments",
    "tags",
    "variants",
]


def _audit_columns() -> list[Column]:
    return [
        Column(
            "created_at",
            UTCDateTime(),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
        Column(
            "updated_at",
            UTCDateTime(),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
        Column(
            "deleted_at",
            UTCDateTime(),
            nullable=True,
            comment="Soft-delete marker; NULL for live rows.",
        ),
    ]


flags = Table(
    "flags",
    metadata,
    Column("id", BIGINT_PK, Identity(start=1), primary_key=True),
    Column("key", String(64), nullable=True, unique=True),
    Column("description", Text, nullable=True),
    Column("enabled", Boolean, nullable=False, server_default=false()),
    Column("notes", Text, nullable=True),
    Column(
        "data_records_enabled", Boolean, nullable=False, server_default=false()
    ),
    Column("entity_type", String(255), nullable=False, server_default=""),
    *_audit_columns(),
    comment="Feature flags.",
)

segments = Table(
    "segments",
    metadata,
    Column("id", BIGINT_PK, Identity(start=1), primary_key=True),
    Column(
        "flag_id", BIGINT_PK, ForeignKey("flags.id", ondelete="CASCADE"), nullable=False
    ),
    Column("description", Text, nullable=True),
    Column("rank", Integer, nullable=False, server_default="0"),
    Column("rollout_percent", Integer, nullable=False, server_default="0"),
    *_audit_columns(),
    CheckConstraint(
        "rollout_percent >= 0 AND rollout_percent <= 100", name="rollout_percent_range"
    ),
    Index(None, "flag_id", "rank"),
    comment="Audience segments of a flag.",
)

constraints = Table(
    "constraints",
    metadata,
    Column("id", BIGINT_PK, Identity(start=1), primary_key=True),
    Column(
        "segment_id",
        BIGINT_PK,
        ForeignKey("segments.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("property", String(255), nullable=False),
    Column("operator", String(32), nullable=False),
    Column("value", Text, nullable=False),
    *_audit_columns(),
    Index(None, "segment_id"),
    comment="Matching rules of a segment.",
)

variants = Table(
    "variants",
    metadata,
    Column("id", BIGINT_PK, Identity(start=1), primary_key=True),
    Column(
        "flag_id", BIGINT_PK, ForeignKey("flags.id", ondelete="CASCADE"), nullable=False
    ),
    Column("key", String(255), nullable=False),
    Column("attachment", PORTABLE_JSON, nullable=True),
    *_audit_columns(),
    Index(None, "flag_id"),
    comment="Possible evaluation results of a flag.",
)

distributions = Table(
    "distributions",
    metadata,
    Column("id", BIGINT_PK, Identity(start=1), primary_key=True),
    Column(
        "segment_id",
        BIGINT_PK,
        ForeignKey("segments.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("variant_id", BIGINT_PK, nullable=False),
    Column("variant_key", String(255), nullable=False, server_default=""),
    Column("percent", Integer, nullable=False, server_default="0"),
    *_audit_columns(),
    CheckConstraint("percent >= 0 AND percent <= 100", name="percent_range"),
    Index(None, "segment_id"),
    comment="Variant split of a segment.",
)

tags = Table(
    "tags",
    metadata,
    Column("id", BIGINT_PK, Identity(start=1), primary_key=True),
    Column("value", String(64), nullable=False, unique=True),
    *_audit_columns(),
    comment="Labels attached to flags.",
)

flags_tags = Table(
    "flags_tags",
    metadata,
    Column(
        "flag_id",
        BIGINT_PK,
        ForeignKey("flags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        BIGINT_PK,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    comment="Flag/tag association.",
)
