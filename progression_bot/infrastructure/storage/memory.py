"""In-process storage backend.

Used for local runs without a database and as the default test double. Each
repository keeps plain dictionaries; multi-row writes build the new state
first and swap it in only when every row validated, so a failed write leaves
previous state intact.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from progression_bot.application.ports.repositories import (
    AthletesRepo,
    LedgerRepo,
    ResultsRepo,
    ScheduleRepo,
    SnapshotsRepo,
)
from progression_bot.application.ports.storage import Storage
from progression_bot.domain.models import (
    Athlete,
    Block,
    LedgerEntry,
    ResultRecord,
    Session,
    StatSnapshot,
)

logger = logging.getLogger(__name__)


class MemoryAthletesRepo(AthletesRepo):
    def __init__(self) -> None:
        self._rows: dict[str, Athlete] = {}

    async def get(self, athlete_id: str) -> Optional[Athlete]:
        return self._rows.get(athlete_id)

    async def get_by_telegram(self, telegram_id: int) -> Optional[Athlete]:
        return next(
            (row for row in self._rows.values() if row.telegram_id == telegram_id),
            None,
        )

    async def list_active(self) -> Sequence[Athlete]:
        return tuple(
            sorted(
                (row for row in self._rows.values() if row.is_active),
                key=lambda row: (row.display_name, row.id),
            )
        )

    async def upsert(self, athlete: Athlete) -> Athlete:
        if athlete.telegram_id is not None:
            owner = await self.get_by_telegram(athlete.telegram_id)
            if owner is not None and owner.id != athlete.id:
                raise ValueError(
                    f"telegram id already linked to athlete {owner.id!r}"
                )
        self._rows[athlete.id] = athlete
        return athlete


class MemoryScheduleRepo(ScheduleRepo):
    def __init__(self) -> None:
        self._blocks: dict[str, Block] = {}
        self._sessions: dict[str, Session] = {}

    async def list_blocks(self, athlete_id: str) -> Sequence[Block]:
        return tuple(
            sorted(
                (b for b in self._blocks.values() if b.athlete_id == athlete_id),
                key=lambda b: b.number,
            )
        )

    async def list_sessions(self, athlete_id: str) -> Sequence[Session]:
        return tuple(
            sorted(
                (s for s in self._sessions.values() if s.athlete_id == athlete_id),
                key=lambda s: (s.block_number, s.week_number, s.session_number),
            )
        )

    async def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    async def add_block(self, block: Block, sessions: Sequence[Session]) -> None:
        if block.id in self._blocks:
            raise ValueError(f"block {block.id} already exists")
        clashes = [s.id for s in sessions if s.id in self._sessions]
        if clashes:
            raise ValueError(f"sessions already exist: {', '.join(clashes)}")
        self._blocks[block.id] = block
        self._sessions.update({s.id: s for s in sessions})

    async def apply_reschedule(
        self,
        athlete_id: str,
        blocks: Sequence[Block],
        sessions: Sequence[Session],
    ) -> None:
        next_blocks = dict(self._blocks)
        next_sessions = dict(self._sessions)
        for block in blocks:
            current = next_blocks.get(block.id)
            if current is None or current.athlete_id != athlete_id:
                raise LookupError(f"block {block.id} does not exist")
            next_blocks[block.id] = block
        for session in sessions:
            current_session = next_sessions.get(session.id)
            if current_session is None or current_session.athlete_id != athlete_id:
                raise LookupError(f"session {session.id} does not exist")
            next_sessions[session.id] = session
        self._blocks = next_blocks
        self._sessions = next_sessions


class MemoryResultsRepo(ResultsRepo):
    def __init__(self) -> None:
        self._rows: dict[str, ResultRecord] = {}

    async def get(self, athlete_id: str, session_id: str) -> Optional[ResultRecord]:
        record = self._rows.get(session_id)
        if record is None or record.athlete_id != athlete_id:
            return None
        return record

    async def list_by_athlete(self, athlete_id: str) -> Sequence[ResultRecord]:
        return tuple(
            sorted(
                (r for r in self._rows.values() if r.athlete_id == athlete_id),
                key=lambda r: r.session_id,
            )
        )

    async def save(self, record: ResultRecord) -> ResultRecord:
        self._rows[record.session_id] = record
        return record


class MemoryLedgerRepo(LedgerRepo):
    def __init__(self) -> None:
        self._entries: dict[str, tuple[LedgerEntry, ...]] = {}

    async def list_entries(self, athlete_id: str) -> Sequence[LedgerEntry]:
        return self._entries.get(athlete_id, ())

    async def replace_entries(
        self, athlete_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        seen: set[tuple[str, str]] = set()
        for entry in entries:
            if entry.athlete_id != athlete_id:
                raise ValueError("ledger entry belongs to another athlete")
            key = (entry.source.value, entry.reference)
            if key in seen:
                raise ValueError(f"duplicate ledger award {key}")
            seen.add(key)
        self._entries[athlete_id] = tuple(
            sorted(
                entries,
                key=lambda e: (e.awarded_at, e.source.value, e.reference),
            )
        )


class MemorySnapshotsRepo(SnapshotsRepo):
    def __init__(self) -> None:
        self._rows: dict[str, StatSnapshot] = {}

    async def get(self, athlete_id: str) -> Optional[StatSnapshot]:
        return self._rows.get(athlete_id)

    async def list_all(self) -> Sequence[StatSnapshot]:
        return tuple(self._rows[key] for key in sorted(self._rows))

    async def save(self, snapshot: StatSnapshot) -> StatSnapshot:
        self._rows[snapshot.athlete_id] = snapshot
        return snapshot


class MemoryStorage(Storage):
    """Storage facade keeping every repository in process memory."""

    def __init__(self) -> None:
        self._athletes_repo: MemoryAthletesRepo | None = None
        self._schedule_repo: MemoryScheduleRepo | None = None
        self._results_repo: MemoryResultsRepo | None = None
        self._ledger_repo: MemoryLedgerRepo | None = None
        self._snapshots_repo: MemorySnapshotsRepo | None = None

    async def init(self) -> None:
        if self._athletes_repo is not None:
            return
        self._athletes_repo = MemoryAthletesRepo()
        self._schedule_repo = MemoryScheduleRepo()
        self._results_repo = MemoryResultsRepo()
        self._ledger_repo = MemoryLedgerRepo()
        self._snapshots_repo = MemorySnapshotsRepo()
        logger.info("In-memory storage initialised")

    async def close(self) -> None:
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
