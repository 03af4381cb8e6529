"""SQLAlchemy-backed FlagFetcher.

Loads every live flag together with its segments, constraints,
distributions, variants and tags. Each table is read with a single
statement over one connection and the rows are stitched together in
memory, so the number of round trips is fixed regardless of how many flags
exist.

Soft-deleted rows (``deleted_at`` set) are skipped, and so are the children
of a soft-deleted parent.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from flagcache.adapters.db.dialects import DialectName, UnsupportedDialect
from flagcache.adapters.db.schema import (
    constraints,
    distributions,
    flags,
    flags_tags,
    segments,
    tags,
    variants,
)
from flagcache.domain.flag import Constraint, Distribution, Flag, Segment, Tag, Variant
from flagcache.interfaces.fetcher import ConfigurationError, FetchError, FlagFetcher

if TYPE_CHECKING:
    from sqlalchemy import RowMapping
    from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

EMPTY_STRING = ""  # pragma: no mutate


def _text(value: str | None) -> str:
    return EMPTY_STRING if value is None else value


class DbFetcher(FlagFetcher):
    """Read flags from the flag tables through a SQLAlchemy Engine.

    Args:
        engine: Engine bound to a supported database (PostgreSQL, MySQL or
            SQLite).

    Raises:
        ConfigurationError: If the engine's dialect is not supported.
    """

    def __init__(self, engine: Engine):
        try:
            self.dialect = DialectName.from_sqlalchemy(engine)
        except UnsupportedDialect as e:
            raise ConfigurationError(str(e)) from e
        self.engine = engine

    def describe(self) -> str:
        return f"db {self.engine.url.render_as_string(hide_password=True)}"

    def fetch(self) -> list[Flag]:
        try:
            with self.engine.connect() as conn:
                result = self._load(conn)
        except SQLAlchemyError as e:
            raise FetchError(self.describe(), str(e).splitlines()[0]) from e
        logger.debug("Loaded %d flags from %s", len(result), self.dialect.value)
        return result

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _load(self, conn: Connection) -> list[Flag]:
        flag_rows = self._rows(
            conn,
            select(flags)
            .where(flags.c.deleted_at.is_(None))
            .order_by(flags.c.id.asc()),
        )
        by_flag: dict[int, Flag] = {row["id"]: self._flag(row) for row in flag_rows}

        by_segment: dict[int, Segment] = {}
        for row in self._rows(
            conn,
            select(segments)
            .where(segments.c.deleted_at.is_(None))
            .order_by(segments.c.rank.asc(), segments.c.id.asc()),
        ):
            if (flag := by_flag.get(row["flag_id"])) is None:
                continue
            segment = Segment(
                id=row["id"],
                flag_id=row["flag_id"],
                description=_text(row["description"]),
                rank=row["rank"],
                rollout_percent=row["rollout_percent"],
            )
            flag.segments.append(segment)
            by_segment[segment.id] = segment

        for row in self._rows(
            conn,
            select(constraints)
            .where(constraints.c.deleted_at.is_(None))
            .order_by(constraints.c.id.asc()),
        ):
            if (segment := by_segment.get(row["segment_id"])) is not None:
                segment.constraints.append(
                    Constraint(
                        id=row["id"],
                        segment_id=row["segment_id"],
                        property=row["property"],
                        operator=row["operator"],
                        value=row["value"],
                    )
                )

        for row in self._rows(
            conn,
            select(distributions)
            .where(distributions.c.deleted_at.is_(None))
            .order_by(distributions.c.id.asc()),
        ):
            if (segment := by_segment.get(row["segment_id"])) is not None:
                segment.distributions.append(
                    Distribution(
                        id=row["id"],
                        segment_id=row["segment_id"],
                        variant_id=row["variant_id"],
                        variant_key=row["variant_key"],
                        percent=row["percent"],
                    )
                )

        for row in self._rows(
            conn,
            select(variants)
            .where(variants.c.deleted_at.is_(None))
            .order_by(variants.c.id.asc()),
        ):
            if (flag := by_flag.get(row["flag_id"])) is not None:
                flag.variants.append(
                    Variant(
                        id=row["id"],
                        flag_id=row["flag_id"],
                        key=row["key"],
                        attachment=row["attachment"],
                    )
                )

        tags_by_flag: dict[int, list[Tag]] = defaultdict(list)
        for row in self._rows(
            conn,
            select(flags_tags.c.flag_id, tags.c.id, tags.c.value)
            .join(tags, tags.c.id == flags_tags.c.tag_id)
            .where(tags.c.deleted_at.is_(None))
            .order_by(flags_tags.c.flag_id.asc(), tags.c.id.asc()),
        ):
            tags_by_flag[row["flag_id"]].append(Tag(id=row["id"], value=row["value"]))
        for flag_id, flag_tags in tags_by_flag.items():
            if (flag := by_flag.get(flag_id)) is not None:
                flag.tags = flag_tags

        return list(by_flag.values())

    @staticmethod
    def _rows(conn: Connection, stmt) -> list[RowMapping]:
        return list(conn.execute(stmt).mappings())

    @staticmethod
    def _flag(row: RowMapping) -> Flag:
        return Flag(
            id=row["id"],
            key=_text(row["key"]),
            description=_text(row["description"]),
            enabled=bool(row["enabled"]),
            notes=_text(row["notes"]),
            data_records_enabled=bool(row["data_records_enabled"]),
            entity_type=_text(row["entity_type"]),
        )
