"""Alembic environment for the configuration tables.

Migrations run against the URL from ``database_config`` over an async
engine without pooling. Importing ``revenue.infrastructure.database.models``
registers every configuration table on ``Base.metadata`` so autogenerate
sees them.
"""

import asyncio
import logging

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from revenue.core.config import get_settings
from revenue.infrastructure.database import models  # noqa: F401
from revenue.infrastructure.database.base import Base

config = context.config
logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def _configure(**kwargs: object) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting to the database."""
    logger.info("Running migrations in offline mode")
    _configure(
        url=get_settings().database_config.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run the migrations on an open connection."""
    _configure(connection=connection)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Connect with an async engine and run the migrations through it."""
    db_config = get_settings().database_config
    logger.info("Running migrations in online mode with async engine")

    connectable = async_engine_from_config(
        {"sqlalchemy.url": db_config.database_url, "sqlalchemy.echo": db_config.echo},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
