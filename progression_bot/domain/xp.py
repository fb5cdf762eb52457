"""Deterministic derivation of the XP ledger from completed sessions.

The ledger is never patched: :func:`build_ledger` returns the complete set of
entries an athlete is entitled to and storage swaps it in as a whole. Every
entry carries a ``reference`` naming what earned it (a session, week, period
or block id) and an ``awarded_at`` taken from the completion data itself, so
identical inputs always produce identical ledgers.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence

from .completion import ResultSchema
from .config import ProgramConfig
from .leveling import LevelProgress, progress_to_next
from .models import (
    Block,
    LedgerEntry,
    ResultRecord,
    Session,
    SessionType,
    XpSource,
    block_key,
)
from .state import is_session_completed

__all__ = [
    "XpSummary",
    "build_ledger",
    "summarize",
    "total_xp",
]

RECENT_ENTRIES = 10


def _entry_sort_key(entry: LedgerEntry) -> tuple[datetime, str, str]:
    return entry.awarded_at, entry.source.value, entry.reference


def _all_completed(
    sessions: Sequence[Session], completed_at: Mapping[str, datetime]
) -> Optional[datetime]:
    """Return the last completion time if every session is completed."""

    if not sessions or any(s.id not in completed_at for s in sessions):
        return None
    return max(completed_at[s.id] for s in sessions)


def build_ledger(
    athlete_id: str,
    blocks: Sequence[Block],
    sessions: Iterable[Session],
    results: Mapping[str, ResultRecord],
    config: ProgramConfig,
    schemas: Mapping[str, ResultSchema] | None = None,
) -> list[LedgerEntry]:
    """Return every XP entry earned by the athlete's completed sessions.

    ``results`` is keyed by session id. Awards configured as ``0`` produce no
    entry.
    """

    awards = config.awards
    workable = sorted(
        (s for s in sessions if s.is_workable),
        key=lambda s: (s.block_number, s.week_number, s.session_number),
    )
    completed_at: dict[str, datetime] = {}
    for session in workable:
        result = results.get(session.id)
        if result is None or result.completed_at is None:
            continue
        if is_session_completed(session, result, schemas):
            completed_at[session.id] = result.completed_at

    entries: list[LedgerEntry] = []

    def award(amount: int, source: XpSource, reference: str, at: datetime) -> None:
        if amount:
            entries.append(
                LedgerEntry(
                    athlete_id=athlete_id,
                    amount=amount,
                    source=source,
                    reference=reference,
                    awarded_at=at,
                )
            )

    for session in workable:
        if session.id not in completed_at:
            continue
        amount = (
            awards.testing_session
            if session.session_type is SessionType.TESTING
            else awards.training_session
        )
        award(amount, XpSource.SESSION_COMPLETE, session.id, completed_at[session.id])

    by_week: dict[tuple[int, int], list[Session]] = defaultdict(list)
    by_block: dict[int, list[Session]] = defaultdict(list)
    for session in workable:
        by_week[(session.block_number, session.week_number)].append(session)
        by_block[session.block_number].append(session)

    for (block_number, week_number), week_sessions in sorted(by_week.items()):
        finished = _all_completed(week_sessions, completed_at)
        if finished is None:
            continue
        reference = f"{block_key(athlete_id, block_number)}:w{week_number}"
        award(awards.week_complete, XpSource.WEEK_COMPLETE, reference, finished)
        if any(s.session_type is SessionType.TESTING for s in week_sessions):
            award(awards.testing_bonus, XpSource.TESTING_BONUS, reference, finished)

    durations = {block.number: block.duration_weeks for block in blocks}
    for block_number, block_sessions in sorted(by_block.items()):
        duration = durations.get(block_number)
        if duration is None:
            continue
        for period in range(duration // config.period_weeks):
            first_week = period * config.period_weeks + 1
            last_week = first_week + config.period_weeks - 1
            period_sessions = [
                s for s in block_sessions if first_week <= s.week_number <= last_week
            ]
            finished = _all_completed(period_sessions, completed_at)
            if finished is None:
                continue
            award(
                awards.period_complete,
                XpSource.PERIOD_COMPLETE,
                f"{block_key(athlete_id, block_number)}:p{period + 1}",
                finished,
            )

        finished = _all_completed(block_sessions, completed_at)
        if finished is not None:
            award(
                awards.consistency_bonus,
                XpSource.CONSISTENCY_BONUS,
                block_key(athlete_id, block_number),
                finished,
            )

    entries.sort(key=_entry_sort_key)
    return entries


def total_xp(entries: Iterable[LedgerEntry]) -> int:
    return sum(entry.amount for entry in entries)


@dataclass(slots=True, frozen=True)
class XpSummary:
    """XP overview shown on the athlete dashboard."""

    total_xp: int
    progress: LevelProgress
    recent: tuple[LedgerEntry, ...] = ()
    by_source: Mapping[XpSource, int] = field(default_factory=dict)


def summarize(
    entries: Sequence[LedgerEntry],
    config: ProgramConfig,
    *,
    recent: int = RECENT_ENTRIES,
) -> XpSummary:
    """Aggregate ledger entries into totals, level progress and recent history."""

    total = total_xp(entries)
    by_source: dict[XpSource, int] = {}
    for entry in entries:
        by_source[entry.source] = by_source.get(entry.source, 0) + entry.amount
    newest = sorted(entries, key=_entry_sort_key, reverse=True)[:recent]
    return XpSummary(
        total_xp=total,
        progress=progress_to_next(total, config.level_thresholds),
        recent=tuple(newest),
        by_source=by_source,
    )
