"""Read models returned to the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .entities import SessionState, SessionType, WeekKind


@dataclass(slots=True, frozen=True)
class SessionView:
    session_id: str
    session_number: int
    session_type: SessionType
    release_date: date
    state: SessionState


@dataclass(slots=True, frozen=True)
class WeekView:
    number: int
    kind: WeekKind
    sessions: tuple[SessionView, ...]

    @property
    def is_complete(self) -> bool:
        workable = [s for s in self.sessions if s.session_type is not SessionType.REST]
        return bool(workable) and all(
            s.state is SessionState.COMPLETED for s in workable
        )


@dataclass(slots=True, frozen=True)
class BlockView:
    number: int
    start_date: date
    end_date: date
    duration_weeks: int
    is_current: bool
    weeks: tuple[WeekView, ...]


@dataclass(slots=True, frozen=True)
class ScheduleView:
    """Full block, week and session tree of one athlete at a moment."""

    athlete_id: str
    blocks: tuple[BlockView, ...]

    @property
    def current_block(self) -> Optional[BlockView]:
        return next((block for block in self.blocks if block.is_current), None)

    def sessions(self) -> tuple[SessionView, ...]:
        return tuple(
            session
            for block in self.blocks
            for week in block.weeks
            for session in week.sessions
        )
