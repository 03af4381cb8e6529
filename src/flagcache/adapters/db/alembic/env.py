"""Alembic environment for the flag tables.

The database URL comes from ``-x url=...``, else the ``sqlalchemy.url`` main
option set by `flagcache.config.build_alembic_config`, else
``FLAGCACHE_DB_CONNECTION_STR``. Autogenerate only sees the flag tables (see
`is_flag_table_name`) and compares column types and server defaults.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

import flagcache.adapters.db.schema  # noqa: F401 # pylint: disable=unused-import
from flagcache import config as flagcache_config
from flagcache.adapters.db.engine import is_sqlite
from flagcache.adapters.db.metadata import is_flag_table_name, metadata

# pylint: disable=no-member

alembic_config = context.config

# programmatic configs (the CLI) keep the application's logging setup
if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

COMPARE_OPTIONS = {
    "target_metadata": metadata,
    "include_name": is_flag_table_name,
    "compare_type": True,
    "compare_server_default": True,
}


def database_url() -> str:
    url = context.get_x_argument(as_dictionary=True).get("url")
    if not url:
        url = alembic_config.get_main_option("sqlalchemy.url")
    if not url or "%(" in url:  # unexpanded ini placeholder
        try:
            url = flagcache_config.get_db_url()
        except flagcache_config.DatabaseUrlNotSetError as e:
            env_var = flagcache_config.DB_CONNECTION_STR_ENV
            raise RuntimeError(f"Set {env_var} to the flag database URL.") from e
    return url


def run_migrations_offline() -> None:
    """Render the migration SQL without connecting."""
    url = database_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=is_sqlite(url),
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply the migrations over a single unpooled connection."""
    url = database_url()
    connectable = engine_from_config(
        {"sqlalchemy.url": url}, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            # SQLite ALTER TABLE goes through batch table rebuilds
            render_as_batch=is_sqlite(url),
            **COMPARE_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
