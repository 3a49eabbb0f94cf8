"""Alembic environment for the wellquest schema.

The database URL is taken, in order, from ``alembic -x db_url=...``, from
``DB_URL`` (``.env`` is loaded by :mod:`wellquest.db.engine`) and finally
from the SQLite default. Relative SQLite paths are resolved against the
repository root.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context

from wellquest.db.engine import DEFAULT_SQLITE_URL, ROOT_DIR, make_engine
from wellquest.db.utils import resolve_sqlite_url
from wellquest.models import Base  # noqa: F401 - import populates metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata

COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("db_url")
    if override:
        return resolve_sqlite_url(override, ROOT_DIR)
    return DEFAULT_SQLITE_URL


def run_migrations_offline(url: str) -> None:
    """Emit the migration SQL for ``url`` without connecting."""

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    """Apply the migrations over a live connection.

    SQLite cannot ALTER constraints in place, so its migrations run in batch
    mode (copy-and-move tables).
    """

    engine = make_engine(database_url=url)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                render_as_batch=connection.dialect.name == "sqlite",
                **COMPARE_OPTIONS,
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


_url = database_url()
# ConfigParser interpolation treats "%" specially.
config.set_main_option("sqlalchemy.url", _url.replace("%", "%%"))

if context.is_offline_mode():
    run_migrations_offline(_url)
else:
    run_migrations_online(_url)
