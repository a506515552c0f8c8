"""
Alembic Migration Environment.

The URL comes from config/settings/database.yaml plus DB_PASSWORD, never
from alembic.ini. Invoked through `python cli.py --service migrate`.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from botbuilder.backend.core.config import get_database_url

# Importing the package registers every table on Base.metadata
from botbuilder.backend.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _run(**options) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **options)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL instead of executing it: `alembic upgrade head --sql`."""
    _run(url=get_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})


def _run_with_connection(connection: Connection) -> None:
    _run(connection=connection)


async def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_database_url()
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    async with engine.connect() as connection:
        await connection.run_sync(_run_with_connection)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
