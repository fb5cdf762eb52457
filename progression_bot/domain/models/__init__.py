"""Domain data transfer objects used across the bot."""

from .entities import (
    Athlete,
    AthleteRole,
    Block,
    LedgerEntry,
    ResultRecord,
    Session,
    SessionState,
    SessionType,
    StatSnapshot,
    WeekKind,
    XpSource,
    block_key,
    session_key,
)
from .views import BlockView, ScheduleView, SessionView, WeekView

__all__ = [
    "Athlete",
    "AthleteRole",
    "Block",
    "BlockView",
    "LedgerEntry",
    "ResultRecord",
    "ScheduleView",
    "Session",
    "SessionState",
    "SessionType",
    "SessionView",
    "StatSnapshot",
    "WeekKind",
    "WeekView",
    "XpSource",
    "block_key",
    "session_key",
]
