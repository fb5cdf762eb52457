"""Session lifecycle resolution for an explicit point in time."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Sequence

from .completion import ResultSchema, is_complete
from .config import ProgramConfig
from .models import (
    Block,
    BlockView,
    ResultRecord,
    ScheduleView,
    Session,
    SessionState,
    SessionType,
    SessionView,
    WeekView,
)
from .schedule import classify_week

__all__ = [
    "as_date",
    "build_schedule_view",
    "is_block_current",
    "is_session_completed",
    "session_state",
]


def as_date(moment: date | datetime) -> date:
    """Return the calendar day of ``moment``."""

    if isinstance(moment, datetime):
        return moment.date()
    return moment


def is_session_completed(
    session: Session,
    result: Optional[ResultRecord],
    schemas: Mapping[str, ResultSchema] | None = None,
) -> bool:
    """Return ``True`` when ``result`` completes ``session``.

    Release dates are ignored here; :func:`session_state` applies them.
    """

    if session.session_type is SessionType.REST or result is None:
        return False
    if result.completed_at is None:
        return False
    return is_complete(result, schemas)


def session_state(
    session: Session,
    result: Optional[ResultRecord],
    now: date | datetime,
    schemas: Mapping[str, ResultSchema] | None = None,
) -> SessionState:
    """Resolve the state of ``session`` at ``now``."""

    if as_date(now) < session.release_date:
        return SessionState.LOCKED
    if is_session_completed(session, result, schemas):
        return SessionState.COMPLETED
    return SessionState.AVAILABLE


def is_block_current(block: Block, now: date | datetime) -> bool:
    return block.contains(as_date(now))


def build_schedule_view(
    athlete_id: str,
    blocks: Sequence[Block],
    sessions: Iterable[Session],
    results: Mapping[str, ResultRecord],
    now: date | datetime,
    config: ProgramConfig,
    schemas: Mapping[str, ResultSchema] | None = None,
) -> ScheduleView:
    """Assemble the block, week and session tree with states at ``now``."""

    by_week: dict[tuple[int, int], list[Session]] = defaultdict(list)
    for session in sessions:
        by_week[(session.block_number, session.week_number)].append(session)

    block_views: list[BlockView] = []
    for block in sorted(blocks, key=lambda b: b.number):
        layout = config.layout_for(block.duration_weeks)
        weeks: list[WeekView] = []
        for week_number in range(1, block.duration_weeks + 1):
            week_sessions = sorted(
                by_week.get((block.number, week_number), ()),
                key=lambda s: s.session_number,
            )
            weeks.append(
                WeekView(
                    number=week_number,
                    kind=classify_week(week_number, layout),
                    sessions=tuple(
                        SessionView(
                            session_id=s.id,
                            session_number=s.session_number,
                            session_type=s.session_type,
                            release_date=s.release_date,
                            state=session_state(s, results.get(s.id), now, schemas),
                        )
                        for s in week_sessions
                    ),
                )
            )
        block_views.append(
            BlockView(
                number=block.number,
                start_date=block.start_date,
                end_date=block.end_date,
                duration_weeks=block.duration_weeks,
                is_current=is_block_current(block, now),
                weeks=tuple(weeks),
            )
        )
    return ScheduleView(athlete_id=athlete_id, blocks=tuple(block_views))
