"""Domain entities shared between use-cases and adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional


class AthleteRole(str, Enum):
    """Role flag separating athletes in the program from staff accounts."""

    TRAINEE = "trainee"
    STAFF = "staff"


class SessionType(str, Enum):
    """Kind of graded activity a session holds."""

    TRAINING = "training"
    TESTING = "testing"
    REST = "rest"


class WeekKind(str, Enum):
    """Derived classification of a week inside a block."""

    TRAINING = "training"
    TESTING = "testing"
    REST = "rest"


class SessionState(str, Enum):
    """Lifecycle state of a session for a given moment."""

    LOCKED = "locked"
    AVAILABLE = "available"
    COMPLETED = "completed"


class XpSource(str, Enum):
    """Closed set of reasons an XP award can be granted for."""

    SESSION_COMPLETE = "session_complete"
    WEEK_COMPLETE = "week_complete"
    TESTING_BONUS = "testing_bonus"
    PERIOD_COMPLETE = "period_complete"
    CONSISTENCY_BONUS = "consistency_bonus"


def block_key(athlete_id: str, block_number: int) -> str:
    """Return the stable identifier of an athlete's block."""

    return f"{athlete_id}:b{block_number}"


def session_key(
    athlete_id: str, block_number: int, week_number: int, session_number: int
) -> str:
    """Return the stable identifier of a generated session."""

    return f"{block_key(athlete_id, block_number)}:w{week_number}:s{session_number}"


@dataclass(slots=True, frozen=True)
class Athlete:
    """Represents a program participant or a staff member."""

    id: str
    display_name: str
    role: AthleteRole = AthleteRole.TRAINEE
    telegram_id: Optional[int] = None
    is_active: bool = True

    @property
    def is_trainee(self) -> bool:
        return self.role is AthleteRole.TRAINEE


@dataclass(slots=True, frozen=True)
class Block:
    """Fixed-length training period owned by one athlete."""

    athlete_id: str
    number: int
    start_date: date
    end_date: date
    duration_weeks: int

    @property
    def id(self) -> str:
        return block_key(self.athlete_id, self.number)

    def contains(self, day: date) -> bool:
        """Return ``True`` when ``day`` falls inside the block (inclusive)."""

        return self.start_date <= day <= self.end_date


@dataclass(slots=True, frozen=True)
class Session:
    """A scheduled activity inside a block week."""

    id: str
    athlete_id: str
    block_number: int
    week_number: int
    session_number: int
    session_type: SessionType
    release_date: date

    @property
    def is_workable(self) -> bool:
        return self.session_type is not SessionType.REST


@dataclass(slots=True, frozen=True)
class ResultRecord:
    """Submitted (or drafted) result for a single session.

    ``values`` is keyed by storage column names of ``schema_version``; the
    completeness predicate translates them back to logical fields.
    """

    athlete_id: str
    session_id: str
    session_type: SessionType
    values: Mapping[str, Any] = field(default_factory=dict)
    schema_version: str = ""
    completed_at: Optional[datetime] = None

    @property
    def is_draft(self) -> bool:
        return self.completed_at is None


@dataclass(slots=True, frozen=True)
class LedgerEntry:
    """Immutable XP award."""

    athlete_id: str
    amount: int
    source: XpSource
    reference: str
    awarded_at: datetime


@dataclass(slots=True, frozen=True)
class StatSnapshot:
    """Rebuildable cache of ledger totals and consistency for an athlete."""

    athlete_id: str
    total_xp: int = 0
    level: int = 1
    consistency_score: float = 0.0
    completed_sessions: int = 0
    released_sessions: int = 0
    updated_at: Optional[datetime] = None
