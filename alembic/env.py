"""
Alembic environment for the ServiTech schema.

The database URL comes from the same settings the app reads
(DATABASE_URL, falling back to SUPABASE_DB_URL); alembic.ini carries no URL.
"""

import os
import sys
from logging.config import fileConfig

from sqlalchemy import pool, create_engine
from alembic import context

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import _database_url
from database.connection import Base
from database import models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    url = _database_url()
    if not url:
        raise RuntimeError("Set DATABASE_URL (or SUPABASE_DB_URL) before running migrations")
    return url


def _configure_options(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place
    return {
        'target_metadata': target_metadata,
        'compare_type': True,
        'render_as_batch': url.startswith('sqlite'),
    }


def run_offline(url: str) -> None:
    """Emit the migration SQL to stdout instead of executing it."""
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url)
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **_configure_options(url))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline(database_url())
else:
    run_online(database_url())
