"""Supported database dialects.

The database fetcher only runs against backends whose schema migrations are
tested. Centralizing the names as an Enum avoids scattering string literals
(e.g., "postgresql", "sqlite") throughout the codebase and gives the backend
selector a single place to reject an unsupported connection string early.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

if TYPE_CHECKING:
    from sqlalchemy.engine import URL, Connection, Engine


class UnsupportedDialect(Exception):
    """Raised when an unsupported database dialect is encountered."""


class DialectName(str, Enum):
    """Enumeration of supported SQLAlchemy dialect names.

    Attributes:
        POSTGRES: PostgreSQL dialect (``"postgresql"``).
        MYSQL:    MySQL / MariaDB dialect (``"mysql"``).
        SQLITE:   SQLite dialect (``"sqlite"``).
    """

    POSTGRES = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"

    @classmethod
    def from_string(cls, dialect_str: str) -> DialectName:
        """Normalize and convert an arbitrary dialect string to DialectName.

        Accepts common aliases and driver-qualified names (e.g., 'postgres',
        'postgresql+psycopg', 'mariadb', 'sqlite3', 'sqlite+pysqlite').

        Args:
            dialect_str: a raw dialect string

        Returns:
            The corresponding DialectName enum member.

        Raises:
            UnsupportedDialect: if the dialect is not recognized or supported.
        """

        base = (dialect_str or "").strip().lower().split("+", 1)[0]

        if base in {"postgres", "postgresql", "pg"}:
            return cls.POSTGRES
        if base in {"mysql", "mariadb"}:
            return cls.MYSQL
        if base in {"sqlite", "sqlite3"}:
            return cls.SQLITE

        raise UnsupportedDialect(f"Unsupported dialect: {dialect_str!r}")

    @classmethod
    def from_url(cls, url: str | URL) -> DialectName:
        """Extract the dialect from a SQLAlchemy URL or URL string.

        Raises:
            UnsupportedDialect: if the URL cannot be parsed or names an
                unsupported backend.
        """
        try:
            parsed = make_url(str(url))
        except ArgumentError as e:
            raise UnsupportedDialect(f"Not a database URL: {url!r}") from e
        return cls.from_string(parsed.get_backend_name())

    @classmethod
    def from_sqlalchemy(cls, obj: Engine | Connection) -> DialectName:
        """Extract dialect from a SQLAlchemy Engine or Connection.

        Raises:
            UnsupportedDialect: if the dialect is not recognized or supported.
        """
        try:
            name = obj.dialect.name
        except AttributeError as e:
            raise UnsupportedDialect(
                f"Object {type(obj).__name__} does not expose .dialect.name"
            ) from e
        return cls.from_string(name)
