"""Shared SQLAlchemy `MetaData` for the flag tables.

Every table read by the database fetcher attaches to this object so that
constraints and indexes get deterministic names, which keeps Alembic
autogenerate from producing spurious drop/add pairs.

Naming convention:
    - Indexes:       ix_<table>_<col...>
    - Unique:        uq_<table>_<col...>
    - Check:         ck_<table>_<constraint_name>
    - Foreign keys:  fk_<table>_<col...>_<reftable>
    - Primary key:   pk_<table>
"""

from __future__ import annotations

from sqlalchemy import MetaData

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_N_name)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def is_flag_table_name(name: str | None, type_: str, parent_names: dict) -> bool:
    """Alembic ``include_name`` hook limiting autogenerate to the flag tables.

    The flag management service shares its database with other tables; those
    are neither created nor dropped by these migrations.
    """
    if type_ == "table":
        return name in metadata.tables
    if type_ in ("column", "index", "unique_constraint", "foreign_key_constraint"):
        return parent_names.get("table_name") in metadata.tables
    return True
