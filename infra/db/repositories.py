"""SQLAlchemy-based repository implementations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from progression_bot.application.ports.repositories import (
    AthletesRepo,
    LedgerRepo,
    ResultsRepo,
    ScheduleRepo,
    SnapshotsRepo,
)
from progression_bot.domain.models import (
    Athlete,
    AthleteRole,
    Block,
    LedgerEntry,
    ResultRecord,
    Session,
    SessionType,
    StatSnapshot,
    XpSource,
)

from .models import (
    AthleteRecord,
    BlockRecord,
    LedgerRecord,
    ResultRow,
    SessionRecord,
    SnapshotRecord,
)


def _ensure_tz(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _optional_tz(value: datetime | None) -> Optional[datetime]:
    return _ensure_tz(value) if value is not None else None


class SqlAthletesRepo(AthletesRepo):
    """Athlete repository backed by SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, athlete_id: str) -> Optional[Athlete]:
        async with self._session_factory() as session:
            record = await session.get(AthleteRecord, athlete_id)
            return _athlete_from_record(record) if record else None

    async def get_by_telegram(self, telegram_id: int) -> Optional[Athlete]:
        stmt = select(AthleteRecord).where(AthleteRecord.telegram_id == telegram_id)
        async with self._session_factory() as session:
            record = (await session.scalars(stmt)).first()
            return _athlete_from_record(record) if record else None

    async def list_active(self) -> Sequence[Athlete]:
        stmt = (
            select(AthleteRecord)
            .where(AthleteRecord.is_active.is_(True))
            .order_by(AthleteRecord.display_name, AthleteRecord.id)
        )
        async with self._session_factory() as session:
            result = await session.scalars(stmt)
            return tuple(_athlete_from_record(row) for row in result)

    async def upsert(self, athlete: Athlete) -> Athlete:
        async with self._session_factory() as session:
            async with session.begin():
                await session.merge(_athlete_to_record(athlete))
        return athlete


class SqlScheduleRepo(ScheduleRepo):
    """Blocks and sessions stored in two tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_blocks(self, athlete_id: str) -> Sequence[Block]:
        stmt = (
            select(BlockRecord)
            .where(BlockRecord.athlete_id == athlete_id)
            .order_by(BlockRecord.number)
        )
        async with self._session_factory() as session:
            result = await session.scalars(stmt)
            return tuple(_block_from_record(row) for row in result)

    async def list_sessions(self, athlete_id: str) -> Sequence[Session]:
        stmt = (
            select(SessionRecord)
            .where(SessionRecord.athlete_id == athlete_id)
            .order_by(
                SessionRecord.block_number,
                SessionRecord.week_number,
                SessionRecord.session_number,
            )
        )
        async with self._session_factory() as session:
            result = await session.scalars(stmt)
            return tuple(_session_from_record(row) for row in result)

    async def get_session(self, session_id: str) -> Optional[Session]:
        async with self._session_factory() as session:
            record = await session.get(SessionRecord, session_id)
            return _session_from_record(record) if record else None

    async def add_block(self, block: Block, sessions: Sequence[Session]) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(_block_to_record(block))
                await session.flush()
                session.add_all([_session_to_record(block, item) for item in sessions])

    async def apply_reschedule(
        self,
        athlete_id: str,
        blocks: Sequence[Block],
        sessions: Sequence[Session],
    ) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                for block in blocks:
                    record = await session.get(BlockRecord, block.id)
                    if record is None or record.athlete_id != athlete_id:
                        raise LookupError(f"block {block.id} does not exist")
                    record.start_date = block.start_date
                    record.end_date = block.end_date
                for item in sessions:
                    record = await session.get(SessionRecord, item.id)
                    if record is None or record.athlete_id != athlete_id:
                        raise LookupError(f"session {item.id} does not exist")
                    record.release_date = item.release_date


class SqlResultsRepo(ResultsRepo):
    """Session results with values stored as a JSON document."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, athlete_id: str, session_id: str) -> Optional[ResultRecord]:
        async with self._session_factory() as session:
            record = await session.get(ResultRow, session_id)
            if record is None or record.athlete_id != athlete_id:
                return None
            return _result_from_record(record)

    async def list_by_athlete(self, athlete_id: str) -> Sequence[ResultRecord]:
        stmt = (
            select(ResultRow)
            .where(ResultRow.athlete_id == athlete_id)
            .order_by(ResultRow.session_id)
        )
        async with self._session_factory() as session:
            result = await session.scalars(stmt)
            return tuple(_result_from_record(row) for row in result)

    async def save(self, record: ResultRecord) -> ResultRecord:
        async with self._session_factory() as session:
            async with session.begin():
                await session.merge(_result_to_record(record))
        return record


class SqlLedgerRepo(LedgerRepo):
    """XP ledger table; replacement happens in a single transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_entries(self, athlete_id: str) -> Sequence[LedgerEntry]:
        stmt = (
            select(LedgerRecord)
            .where(LedgerRecord.athlete_id == athlete_id)
            .order_by(LedgerRecord.awarded_at, LedgerRecord.source, LedgerRecord.reference)
        )
        async with self._session_factory() as session:
            result = await session.scalars(stmt)
            return tuple(_entry_from_record(row) for row in result)

    async def replace_entries(
        self, athlete_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    delete(LedgerRecord).where(LedgerRecord.athlete_id == athlete_id)
                )
                session.add_all([_entry_to_record(entry) for entry in entries])


class SqlSnapshotsRepo(SnapshotsRepo):
    """Stat snapshot table, one row per athlete."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, athlete_id: str) -> Optional[StatSnapshot]:
        async with self._session_factory() as session:
            record = await session.get(SnapshotRecord, athlete_id)
            return _snapshot_from_record(record) if record else None

    async def list_all(self) -> Sequence[StatSnapshot]:
        stmt = select(SnapshotRecord).order_by(SnapshotRecord.athlete_id)
        async with self._session_factory() as session:
            result = await session.scalars(stmt)
            return tuple(_snapshot_from_record(row) for row in result)

    async def save(self, snapshot: StatSnapshot) -> StatSnapshot:
        async with self._session_factory() as session:
            async with session.begin():
                await session.merge(_snapshot_to_record(snapshot))
        return snapshot


def _athlete_from_record(record: AthleteRecord) -> Athlete:
    return Athlete(
        id=record.id,
        display_name=record.display_name,
        role=AthleteRole(record.role),
        telegram_id=record.telegram_id,
        is_active=record.is_active,
    )


def _athlete_to_record(entity: Athlete) -> AthleteRecord:
    return AthleteRecord(
        id=entity.id,
        display_name=entity.display_name,
        role=entity.role.value,
        telegram_id=entity.telegram_id,
        is_active=entity.is_active,
    )


def _block_from_record(record: BlockRecord) -> Block:
    return Block(
        athlete_id=record.athlete_id,
        number=record.number,
        start_date=record.start_date,
        end_date=record.end_date,
        duration_weeks=record.duration_weeks,
    )


def _block_to_record(entity: Block) -> BlockRecord:
    return BlockRecord(
        id=entity.id,
        athlete_id=entity.athlete_id,
        number=entity.number,
        start_date=entity.start_date,
        end_date=entity.end_date,
        duration_weeks=entity.duration_weeks,
    )


def _session_from_record(record: SessionRecord) -> Session:
    return Session(
        id=record.id,
        athlete_id=record.athlete_id,
        block_number=record.block_number,
        week_number=record.week_number,
        session_number=record.session_number,
        session_type=SessionType(record.session_type),
        release_date=record.release_date,
    )


def _session_to_record(block: Block, entity: Session) -> SessionRecord:
    return SessionRecord(
        id=entity.id,
        athlete_id=entity.athlete_id,
        block_id=block.id,
        block_number=entity.block_number,
        week_number=entity.week_number,
        session_number=entity.session_number,
        session_type=entity.session_type.value,
        release_date=entity.release_date,
    )


def _result_from_record(record: ResultRow) -> ResultRecord:
    return ResultRecord(
        athlete_id=record.athlete_id,
        session_id=record.session_id,
        session_type=SessionType(record.session_type),
        values=dict(record.payload or {}),
        schema_version=record.schema_version,
        completed_at=_optional_tz(record.completed_at),
    )


def _result_to_record(entity: ResultRecord) -> ResultRow:
    return ResultRow(
        session_id=entity.session_id,
        athlete_id=entity.athlete_id,
        session_type=entity.session_type.value,
        payload=dict(entity.values),
        schema_version=entity.schema_version,
        completed_at=_optional_tz(entity.completed_at),
    )


def _entry_from_record(record: LedgerRecord) -> LedgerEntry:
    return LedgerEntry(
        athlete_id=record.athlete_id,
        amount=record.amount,
        source=XpSource(record.source),
        reference=record.reference,
        awarded_at=_ensure_tz(record.awarded_at),
    )


def _entry_to_record(entity: LedgerEntry) -> LedgerRecord:
    return LedgerRecord(
        athlete_id=entity.athlete_id,
        amount=entity.amount,
        source=entity.source.value,
        reference=entity.reference,
        awarded_at=_ensure_tz(entity.awarded_at),
    )


def _snapshot_from_record(record: SnapshotRecord) -> StatSnapshot:
    return StatSnapshot(
        athlete_id=record.athlete_id,
        total_xp=record.total_xp,
        level=record.level,
        consistency_score=record.consistency_score,
        completed_sessions=record.completed_sessions,
        released_sessions=record.released_sessions,
        updated_at=_optional_tz(record.updated_at),
    )


def _snapshot_to_record(entity: StatSnapshot) -> SnapshotRecord:
    return SnapshotRecord(
        athlete_id=entity.athlete_id,
        total_xp=entity.total_xp,
        level=entity.level,
        consistency_score=entity.consistency_score,
        completed_sessions=entity.completed_sessions,
        released_sessions=entity.released_sessions,
        updated_at=_optional_tz(entity.updated_at),
    )
