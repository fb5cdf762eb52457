"""Use-cases of the training program exposed to the presentation layer.

``ProgramService`` is the only writer of ledgers and stat snapshots. Every
operation that changes the inputs of a snapshot (results, ledger, release
dates) refreshes it before returning, under the athlete's lock.
"""

from __future__ import annotations

import dataclasses
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from time import perf_counter
from typing import Any, AsyncIterator, Callable, Mapping, Optional, Sequence

from progression_bot.application.locks import AthleteLocks
from progression_bot.application.ports.storage import Storage
from progression_bot.domain.completion import (
    ResultSchema,
    get_schema,
    missing_fields,
)
from progression_bot.domain.config import ProgramConfig
from progression_bot.domain.consistency import measure_consistency
from progression_bot.domain.errors import (
    IncompleteSubmission,
    NotFound,
    SessionLocked,
)
from progression_bot.domain.leaderboard import (
    ConsistencyStanding,
    LeaderboardEntry,
    LeaderboardKind,
    StrengthStanding,
    rank_consistency,
    rank_strength,
)
from progression_bot.domain.leveling import LevelProgress, level_of, progress_to_next
from progression_bot.domain.models import (
    Athlete,
    Block,
    LedgerEntry,
    ResultRecord,
    ScheduleView,
    SessionType,
    StatSnapshot,
)
from progression_bot.domain.progress import MetricProgress, track_progress
from progression_bot.domain.schedule import (
    generate_block,
    next_block_start,
    reschedule,
)
from progression_bot.domain.state import as_date, build_schedule_view
from progression_bot.domain.xp import XpSummary, build_ledger, summarize, total_xp
from utils.logger import get_logger
from utils.sentry import capture_exception

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_datetime(moment: date | datetime) -> datetime:
    """Return ``moment`` as an aware datetime; naive values are taken as UTC."""

    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            return moment.replace(tzinfo=timezone.utc)
        return moment
    return datetime.combine(moment, time.min, tzinfo=timezone.utc)


@dataclass(slots=True)
class BatchReport:
    """Outcome of a fleet-wide recomputation."""

    processed: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class ProgramService:
    """Coordinates domain rules with persistence for one program."""

    def __init__(
        self,
        storage: Storage,
        config: ProgramConfig,
        *,
        locks: AthleteLocks | None = None,
        schemas: Mapping[str, ResultSchema] | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._storage = storage
        self._config = config
        self._locks = locks or AthleteLocks(config.lock_timeout)
        self._schemas = schemas
        self._clock = clock

    @property
    def config(self) -> ProgramConfig:
        return self._config

    @asynccontextmanager
    async def _timed(self, op: str, athlete_id: Optional[str] = None) -> AsyncIterator[None]:
        start = perf_counter()
        try:
            yield
        finally:
            logger.info(
                f"{op}_complete",
                extra={
                    "athlete_id": athlete_id,
                    "op": op,
                    "latency_ms": round((perf_counter() - start) * 1000, 2),
                },
            )

    async def _require_athlete(self, athlete_id: str) -> Athlete:
        athlete = await self._storage.athletes.get(athlete_id)
        if athlete is None:
            raise NotFound("athlete", athlete_id)
        return athlete

    async def _results_by_session(self, athlete_id: str) -> dict[str, ResultRecord]:
        records = await self._storage.results.list_by_athlete(athlete_id)
        return {record.session_id: record for record in records}

    # --- schedule -----------------------------------------------------------

    async def enroll(
        self,
        athlete: Athlete,
        start_date: date,
        *,
        blocks: int = 1,
        duration_weeks: Optional[int] = None,
        now: date | datetime | None = None,
    ) -> list[Block]:
        """Register ``athlete`` and create ``blocks`` consecutive blocks.

        Raises:
            InvalidDuration: If ``duration_weeks`` has no layout.
            ScheduleConflict: If the athlete already has block 1.
        """

        if blocks < 1:
            raise ValueError("blocks must be at least 1")
        async with self._timed("enroll", athlete.id):
            await self._storage.athletes.upsert(athlete)
            async with self._locks.hold(athlete.id):
                existing = list(await self._storage.schedule.list_blocks(athlete.id))
                created: list[Block] = []
                cursor = start_date
                for number in range(1, blocks + 1):
                    generated = generate_block(
                        athlete.id,
                        number,
                        cursor,
                        self._config,
                        duration_weeks=duration_weeks,
                        existing=existing,
                    )
                    await self._storage.schedule.add_block(
                        generated.block, generated.sessions
                    )
                    existing.append(generated.block)
                    created.append(generated.block)
                    cursor = next_block_start(existing) or cursor
                await self._refresh_locked(athlete.id, now)
        return created

    async def add_block(
        self,
        athlete_id: str,
        *,
        start_date: Optional[date] = None,
        duration_weeks: Optional[int] = None,
        now: date | datetime | None = None,
    ) -> Block:
        """Append the next block, by default the day after the last one ends."""

        await self._require_athlete(athlete_id)
        async with self._timed("add_block", athlete_id):
            async with self._locks.hold(athlete_id):
                existing = list(await self._storage.schedule.list_blocks(athlete_id))
                start = start_date or next_block_start(existing)
                if start is None:
                    raise ValueError(
                        "athlete has no blocks yet; pass start_date for the first block"
                    )
                number = max((b.number for b in existing), default=0) + 1
                generated = generate_block(
                    athlete_id,
                    number,
                    start,
                    self._config,
                    duration_weeks=duration_weeks,
                    existing=existing,
                )
                await self._storage.schedule.add_block(generated.block, generated.sessions)
                await self._refresh_locked(athlete_id, now)
        return generated.block

    async def get_schedule(self, athlete_id: str, now: date | datetime) -> ScheduleView:
        await self._require_athlete(athlete_id)
        blocks = await self._storage.schedule.list_blocks(athlete_id)
        sessions = await self._storage.schedule.list_sessions(athlete_id)
        results = await self._results_by_session(athlete_id)
        return build_schedule_view(
            athlete_id, blocks, sessions, results, now, self._config, self._schemas
        )

    async def reschedule_from(
        self,
        athlete_id: str,
        block_number: int,
        new_start_date: date,
        *,
        now: date | datetime | None = None,
    ) -> tuple[Block, ...]:
        """Move ``block_number`` to ``new_start_date`` and cascade later blocks.

        The touched blocks and sessions are written in one storage
        transaction; on failure nothing changes.
        """

        await self._require_athlete(athlete_id)
        async with self._timed("reschedule", athlete_id):
            async with self._locks.hold(athlete_id):
                blocks = await self._storage.schedule.list_blocks(athlete_id)
                sessions = await self._storage.schedule.list_sessions(athlete_id)
                updated_blocks, updated_sessions = reschedule(
                    blocks, sessions, block_number, new_start_date, self._config
                )
                await self._storage.schedule.apply_reschedule(
                    athlete_id, updated_blocks, updated_sessions
                )
                await self._refresh_locked(athlete_id, now)
        return updated_blocks

    # --- results ------------------------------------------------------------

    async def submit_result(
        self,
        athlete_id: str,
        session_id: str,
        fields: Mapping[str, Any],
        now: date | datetime,
        *,
        complete: bool = True,
    ) -> ResultRecord:
        """Store a result and bring ledger and snapshot up to date.

        ``fields`` uses logical field names. Values are merged into any
        existing record of the session. With ``complete`` the merged record
        must hold every required field, otherwise
        :class:`IncompleteSubmission` is raised and nothing is written.
        Without it the record is saved as a draft, unless the session is
        already completed: then the merged values must stay complete and the
        original completion time is kept. The ledger is built before anything
        is written, and naive ``now`` values are taken as UTC.

        Raises:
            NotFound: Unknown athlete or session.
            SessionLocked: The session is not released at ``now``.
            ValueError: Rest session or unknown field names.
        """

        await self._require_athlete(athlete_id)
        session = await self._storage.schedule.get_session(session_id)
        if session is None or session.athlete_id != athlete_id:
            raise NotFound("session", session_id)
        if session.session_type is SessionType.REST:
            raise ValueError("rest sessions do not accept results")
        if as_date(now) < session.release_date:
            raise SessionLocked(session_id, session.release_date)

        schema = get_schema(self._config.result_schema_version, self._schemas)
        updates = schema.to_storage(session.session_type, fields)

        async with self._timed("submit_result", athlete_id):
            async with self._locks.hold(athlete_id):
                existing = await self._storage.results.get(athlete_id, session_id)
                values: dict[str, Any] = {}
                if existing is not None:
                    previous = get_schema(existing.schema_version, self._schemas)
                    logical = previous.to_logical(session.session_type, existing.values)
                    values = schema.to_storage(
                        session.session_type,
                        {k: v for k, v in logical.items() if v is not None},
                    )
                values.update(updates)

                record = ResultRecord(
                    athlete_id=athlete_id,
                    session_id=session_id,
                    session_type=session.session_type,
                    values=values,
                    schema_version=schema.version,
                )
                already_completed = (
                    existing is not None and existing.completed_at is not None
                )
                # A completed session never goes back to draft.
                if complete or already_completed:
                    missing = missing_fields(record, self._schemas)
                    if missing:
                        raise IncompleteSubmission(session_id, missing)
                    completed_at = (
                        existing.completed_at
                        if already_completed
                        else _as_datetime(now)
                    )
                    record = dataclasses.replace(record, completed_at=completed_at)

                results = await self._results_by_session(athlete_id)
                results[session_id] = record
                entries = await self._build_entries(athlete_id, results)

                saved = await self._storage.results.save(record)
                await self._storage.ledger.replace_entries(athlete_id, entries)
                await self._refresh_locked(athlete_id, now)
        return saved

    # --- ledger & snapshot --------------------------------------------------

    async def _build_entries(
        self, athlete_id: str, results: Mapping[str, ResultRecord]
    ) -> list[LedgerEntry]:
        blocks = await self._storage.schedule.list_blocks(athlete_id)
        sessions = await self._storage.schedule.list_sessions(athlete_id)
        return build_ledger(
            athlete_id, blocks, sessions, results, self._config, self._schemas
        )

    async def _recompute_locked(self, athlete_id: str) -> list[LedgerEntry]:
        results = await self._results_by_session(athlete_id)
        entries = await self._build_entries(athlete_id, results)
        await self._storage.ledger.replace_entries(athlete_id, entries)
        return entries

    async def _refresh_locked(
        self, athlete_id: str, now: date | datetime | None
    ) -> StatSnapshot:
        moment = self._clock() if now is None else now
        entries = await self._storage.ledger.list_entries(athlete_id)
        sessions = await self._storage.schedule.list_sessions(athlete_id)
        results = await self._results_by_session(athlete_id)
        score = measure_consistency(
            sessions,
            results,
            moment,
            precision=self._config.consistency_precision,
            schemas=self._schemas,
        )
        xp = total_xp(entries)
        snapshot = StatSnapshot(
            athlete_id=athlete_id,
            total_xp=xp,
            level=level_of(xp, self._config.level_thresholds),
            consistency_score=score.score,
            completed_sessions=score.completed,
            released_sessions=score.released,
            updated_at=_as_datetime(moment),
        )
        return await self._storage.snapshots.save(snapshot)

    async def recompute_ledger(
        self, athlete_id: str, *, now: date | datetime | None = None
    ) -> list[LedgerEntry]:
        """Rebuild the athlete's ledger from scratch and refresh the snapshot.

        Running it twice on unchanged data yields identical entries.
        """

        await self._require_athlete(athlete_id)
        async with self._timed("recompute_ledger", athlete_id):
            async with self._locks.hold(athlete_id):
                entries = await self._recompute_locked(athlete_id)
                await self._refresh_locked(athlete_id, now)
        return entries

    async def refresh_stats(
        self, athlete_id: str, now: date | datetime | None = None
    ) -> StatSnapshot:
        await self._require_athlete(athlete_id)
        async with self._locks.hold(athlete_id):
            return await self._refresh_locked(athlete_id, now)

    async def get_stats(self, athlete_id: str) -> StatSnapshot:
        """Return the cached snapshot, or zeros when none was computed yet."""

        await self._require_athlete(athlete_id)
        snapshot = await self._storage.snapshots.get(athlete_id)
        return snapshot or StatSnapshot(athlete_id=athlete_id)

    async def get_level_progress(self, athlete_id: str) -> LevelProgress:
        snapshot = await self.get_stats(athlete_id)
        return progress_to_next(snapshot.total_xp, self._config.level_thresholds)

    async def get_xp_summary(self, athlete_id: str) -> XpSummary:
        await self._require_athlete(athlete_id)
        entries = await self._storage.ledger.list_entries(athlete_id)
        return summarize(entries, self._config)

    async def get_progress(self, athlete_id: str) -> list[MetricProgress]:
        await self._require_athlete(athlete_id)
        sessions = await self._storage.schedule.list_sessions(athlete_id)
        results = await self._results_by_session(athlete_id)
        return track_progress(sessions, results, self._schemas)

    # --- leaderboards -------------------------------------------------------

    async def get_leaderboard(
        self,
        kind: LeaderboardKind | str,
        *,
        requester_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[LeaderboardEntry]:
        """Rank active trainees; staff accounts never appear."""

        board = LeaderboardKind(kind)
        athletes = [a for a in await self._storage.athletes.list_active() if a.is_trainee]
        snapshots = {s.athlete_id: s for s in await self._storage.snapshots.list_all()}

        def snapshot_of(athlete: Athlete) -> StatSnapshot:
            return snapshots.get(athlete.id) or StatSnapshot(athlete_id=athlete.id)

        if board is LeaderboardKind.STRENGTH:
            return rank_strength(
                [
                    StrengthStanding(
                        athlete_id=a.id,
                        display_name=a.display_name,
                        level=snapshot_of(a).level,
                        xp=snapshot_of(a).total_xp,
                    )
                    for a in athletes
                ],
                requester_id=requester_id,
                limit=limit,
            )
        return rank_consistency(
            [
                ConsistencyStanding(
                    athlete_id=a.id,
                    display_name=a.display_name,
                    consistency=snapshot_of(a).consistency_score,
                    completed=snapshot_of(a).completed_sessions,
                )
                for a in athletes
            ],
            requester_id=requester_id,
            limit=limit,
        )

    async def find_athlete_by_telegram(self, telegram_id: int) -> Optional[Athlete]:
        return await self._storage.athletes.get_by_telegram(telegram_id)

    # --- batch --------------------------------------------------------------

    async def recompute_all(
        self,
        *,
        now: date | datetime | None = None,
        athlete_ids: Optional[Sequence[str]] = None,
    ) -> BatchReport:
        """Recompute ledger and snapshot for every active trainee.

        A failure for one athlete is logged, reported and recorded in the
        returned report; the loop carries on with the next athlete.
        """

        if athlete_ids is None:
            athletes = await self._storage.athletes.list_active()
            athlete_ids = [a.id for a in athletes if a.is_trainee]

        report = BatchReport()
        async with self._timed("recompute_all"):
            for athlete_id in athlete_ids:
                try:
                    await self.recompute_ledger(athlete_id, now=now)
                except Exception as exc:
                    logger.exception(
                        "recompute_failed",
                        extra={"athlete_id": athlete_id, "op": "recompute_all"},
                    )
                    capture_exception(exc, athlete_id=athlete_id, op="recompute_all")
                    report.failures[athlete_id] = str(exc)
                else:
                    report.processed.append(athlete_id)
        return report
