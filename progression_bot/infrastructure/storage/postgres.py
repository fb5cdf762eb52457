"""SQLAlchemy backed implementation of the storage facade."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infra.db import Base, async_session_factory, create_engine
from infra.db.repositories import (
    SqlAthletesRepo,
    SqlLedgerRepo,
    SqlResultsRepo,
    SqlScheduleRepo,
    SqlSnapshotsRepo,
)
from progression_bot.application.ports.repositories import (
    AthletesRepo,
    LedgerRepo,
    ResultsRepo,
    ScheduleRepo,
    SnapshotsRepo,
)
from progression_bot.application.ports.storage import Storage


class PostgresStorage(Storage):
    """Storage facade powered by SQLAlchemy.

    Production runs on Postgres; any async SQLAlchemy URL works, which is how
    the test-suite exercises it on ``sqlite+aiosqlite``.
    """

    def __init__(self, *, database_url: str, create_schema: bool = False) -> None:
        self._database_url = database_url
        self._create_schema = create_schema
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._athletes_repo: SqlAthletesRepo | None = None
        self._schedule_repo: SqlScheduleRepo | None = None
        self._results_repo: SqlResultsRepo | None = None
        self._ledger_repo: SqlLedgerRepo | None = None
        self._snapshots_repo: SqlSnapshotsRepo | None = None

    async def init(self) -> None:
        self._engine = create_engine(self._database_url)
        if self._create_schema:
            async with self._engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
        self._session_factory = async_session_factory(self._engine)
        self._athletes_repo = SqlAthletesRepo(self._session_factory)
        self._schedule_repo = SqlScheduleRepo(self._session_factory)
        self._results_repo = SqlResultsRepo(self._session_factory)
        self._ledger_repo = SqlLedgerRepo(self._session_factory)
        self._snapshots_repo = SqlSnapshotsRepo(self._session_factory)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
        self._athletes_repo = None
        self._schedule_repo = None
        self._results_repo = None
        self._ledger_repo = None
        self._snapshots_repo = None

    @property
    def athletes(self) -> AthletesRepo:
        if self._athletes_repo is None:
            raise RuntimeError("Storage not initialised")
        return self._athletes_repo

    @property
    def schedule(self) -> ScheduleRepo:
        if self._schedule_repo is None:
            raise RuntimeError("Storage not initialised")
        return self._schedule_repo

    @property
    def results(self) -> ResultsRepo:
        if self._results_repo is None:
            raise RuntimeError("Storage not initialised")
        return self._results_repo

    @property
    def ledger(self) -> LedgerRepo:
        if self._ledger_repo is None:
            raise RuntimeError("Storage not initialised")
        return self._ledger_repo

    @property
    def snapshots(self) -> SnapshotsRepo:
        if self._snapshots_repo is None:
            raise RuntimeError("Storage not initialised")
        return self._snapshots_repo

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("Storage not initialised")
        return self._session_factory

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Storage not initialised")
        return self._engine
