"""Engine and session factory for the program tables.

Production runs on Postgres through asyncpg; tests and local runs use SQLite
files through aiosqlite. Both go through :func:`create_engine`, and so do the
Alembic migrations.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import pool
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

SQLITE_BUSY_TIMEOUT = 30


def engine_options(database_url: str, *, migrations: bool = False) -> dict[str, Any]:
    """Return ``create_async_engine`` keyword arguments for ``database_url``."""

    if migrations:
        return {"poolclass": pool.NullPool}
    if make_url(database_url).get_backend_name() == "sqlite":
        # Ledger replacement and reschedule hold a write transaction.
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT}}
    return {"pool_pre_ping": True}


def create_engine(database_url: str, *, migrations: bool = False) -> AsyncEngine:
    """Create the async engine for the configured database.

    Raises:
        RuntimeError: If ``database_url`` is empty.
    """

    if not database_url:
        raise RuntimeError("A database URL is required to create the engine.")
    return create_async_engine(
        database_url, **engine_options(database_url, migrations=migrations)
    )


def async_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded rows usable after commit for domain conversion."""

    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
