"""Alembic environment for the progression bot schema."""

from __future__ import annotations

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from infra.db.models import Base
from infra.db.session import create_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _get_url() -> str:
    """``DB_URL`` from the bot environment wins over ``alembic.ini``."""

    return os.getenv("DB_URL") or config.get_main_option("sqlalchemy.url")


def run_migrations_offline() -> None:
    """Emit the program table DDL as SQL without a database connection."""

    url = _get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def _apply_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations through the same async engine the bot uses."""

    connectable: AsyncEngine = create_engine(_get_url(), migrations=True)

    async def run_async_migrations() -> None:
        async with connectable.begin() as connection:
            await connection.run_sync(_apply_migrations)

    try:
        asyncio.run(run_async_migrations())
    finally:
        connectable.sync_engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
