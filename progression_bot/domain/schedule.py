"""Block schedule generation and cascading reschedule.

Everything here is a pure function of its inputs: no clock is read and no
storage is touched. The program service persists the returned entities.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Sequence

from .config import ProgramConfig, WeekLayout
from .errors import NotFound, ScheduleConflict
from .models import Block, Session, SessionType, WeekKind, session_key

__all__ = [
    "GeneratedBlock",
    "block_end_date",
    "classify_week",
    "generate_block",
    "generate_sessions",
    "next_block_start",
    "release_date",
    "reschedule",
    "week_kinds",
]

_SESSIONS_PER_WEEK = {
    WeekKind.TRAINING: 2,
    WeekKind.TESTING: 1,
    WeekKind.REST: 0,
}


@dataclass(slots=True, frozen=True)
class GeneratedBlock:
    """A freshly generated block with all of its sessions."""

    block: Block
    sessions: tuple[Session, ...]

    @property
    def workable_sessions(self) -> tuple[Session, ...]:
        return tuple(s for s in self.sessions if s.is_workable)


def block_end_date(start_date: date, duration_weeks: int) -> date:
    """Return the last day of a block starting on ``start_date``."""

    return start_date + timedelta(weeks=duration_weeks) - timedelta(days=1)


def classify_week(week_number: int, layout: WeekLayout) -> WeekKind:
    """Rest weeks win over testing weeks when a layout lists both."""

    if week_number in layout.rest_weeks:
        return WeekKind.REST
    if week_number in layout.testing_weeks:
        return WeekKind.TESTING
    return WeekKind.TRAINING


def week_kinds(duration_weeks: int, config: ProgramConfig) -> tuple[WeekKind, ...]:
    """Return the kind of every week (index 0 is week 1)."""

    layout = config.layout_for(duration_weeks)
    return tuple(classify_week(week, layout) for week in range(1, duration_weeks + 1))


def release_date(
    block_start: date,
    week_number: int,
    session_number: int,
    session_type: SessionType,
    config: ProgramConfig,
) -> date:
    """Return the day a session unlocks.

    The second training session of a week is drip-fed
    ``config.second_session_offset_days`` after the first one.
    """

    released = block_start + timedelta(weeks=week_number - 1)
    if session_type is SessionType.TRAINING and session_number > 1:
        released += timedelta(days=config.second_session_offset_days * (session_number - 1))
    return released


def _session_type_for(kind: WeekKind) -> SessionType:
    return SessionType(kind.value)


def generate_sessions(
    athlete_id: str,
    block_number: int,
    start_date: date,
    duration_weeks: int,
    config: ProgramConfig,
) -> tuple[Session, ...]:
    """Return every session of a block ordered by week and session number."""

    sessions: list[Session] = []
    for week_number, kind in enumerate(week_kinds(duration_weeks, config), start=1):
        count = _SESSIONS_PER_WEEK[kind]
        if kind is WeekKind.REST and config.rest_placeholders:
            count = 1
        session_type = _session_type_for(kind)
        for session_number in range(1, count + 1):
            sessions.append(
                Session(
                    id=session_key(athlete_id, block_number, week_number, session_number),
                    athlete_id=athlete_id,
                    block_number=block_number,
                    week_number=week_number,
                    session_number=session_number,
                    session_type=session_type,
                    release_date=release_date(
                        start_date, week_number, session_number, session_type, config
                    ),
                )
            )
    return tuple(sessions)


def _check_neighbours(candidate: Block, existing: Iterable[Block]) -> None:
    for other in existing:
        if other.number == candidate.number:
            raise ScheduleConflict(
                f"block {candidate.number} already exists for athlete {candidate.athlete_id}"
            )
        if other.start_date <= candidate.end_date and candidate.start_date <= other.end_date:
            raise ScheduleConflict(
                f"block {candidate.number} ({candidate.start_date} - {candidate.end_date}) "
                f"overlaps block {other.number} ({other.start_date} - {other.end_date})"
            )
        if other.number == candidate.number - 1:
            expected = other.end_date + timedelta(days=1)
            if candidate.start_date != expected:
                raise ScheduleConflict(
                    f"block {candidate.number} must start on {expected}, "
                    f"the day after block {other.number} ends"
                )
        if other.number == candidate.number + 1:
            expected = candidate.end_date + timedelta(days=1)
            if other.start_date != expected:
                raise ScheduleConflict(
                    f"block {candidate.number} would end on {candidate.end_date} but "
                    f"block {other.number} starts on {other.start_date}"
                )


def generate_block(
    athlete_id: str,
    block_number: int,
    start_date: date,
    config: ProgramConfig,
    *,
    duration_weeks: int | None = None,
    existing: Sequence[Block] = (),
) -> GeneratedBlock:
    """Generate a block and its sessions.

    Raises:
        InvalidDuration: If ``duration_weeks`` has no valid layout.
        ScheduleConflict: If the block collides with ``existing`` blocks.
    """

    duration = config.block_duration_weeks if duration_weeks is None else duration_weeks
    config.layout_for(duration)
    if block_number < 1:
        raise ValueError("block_number must be positive")
    block = Block(
        athlete_id=athlete_id,
        number=block_number,
        start_date=start_date,
        end_date=block_end_date(start_date, duration),
        duration_weeks=duration,
    )
    _check_neighbours(block, existing)
    sessions = generate_sessions(athlete_id, block_number, start_date, duration, config)
    return GeneratedBlock(block=block, sessions=sessions)


def next_block_start(blocks: Sequence[Block]) -> date | None:
    """Return the day after the last block ends, if there is any block."""

    if not blocks:
        return None
    last = max(blocks, key=lambda b: b.number)
    return last.end_date + timedelta(days=1)


def reschedule(
    blocks: Sequence[Block],
    sessions: Sequence[Session],
    block_number: int,
    new_start_date: date,
    config: ProgramConfig,
) -> tuple[tuple[Block, ...], tuple[Session, ...]]:
    """Shift ``block_number`` and every later block, returning the touched entities.

    Later blocks start the day after the previous block ends and keep their
    own durations. Session ids, numbers and types are preserved so results
    stay attached; only release dates move.

    Raises:
        NotFound: If the athlete has no block ``block_number``.
        ScheduleConflict: If the new start breaks contiguity with the
            preceding block.
    """

    ordered = sorted(blocks, key=lambda b: b.number)
    if not any(b.number == block_number for b in ordered):
        raise NotFound("block", block_number)

    previous = [b for b in ordered if b.number < block_number]
    if previous:
        expected = previous[-1].end_date + timedelta(days=1)
        if new_start_date != expected:
            raise ScheduleConflict(
                f"block {block_number} must start on {expected}, the day after "
                f"block {previous[-1].number} ends; reschedule an earlier block instead"
            )

    updated_blocks: list[Block] = []
    cursor = new_start_date
    for block in ordered:
        if block.number < block_number:
            continue
        end_date = block_end_date(cursor, block.duration_weeks)
        updated_blocks.append(dataclasses.replace(block, start_date=cursor, end_date=end_date))
        cursor = end_date + timedelta(days=1)

    starts = {b.number: b.start_date for b in updated_blocks}
    updated_sessions = tuple(
        dataclasses.replace(
            session,
            release_date=release_date(
                starts[session.block_number],
                session.week_number,
                session.session_number,
                session.session_type,
                config,
            ),
        )
        for session in sessions
        if session.block_number in starts
    )
    return tuple(updated_blocks), updated_sessions
