"""SQLAlchemy models and session utilities for SQL storage."""

from .models import (
    AthleteRecord,
    Base,
    BlockRecord,
    LedgerRecord,
    ResultRow,
    SessionRecord,
    SnapshotRecord,
)
from .session import async_session_factory, create_engine

__all__ = [
    "Base",
    "create_engine",
    "async_session_factory",
    "AthleteRecord",
    "BlockRecord",
    "LedgerRecord",
    "ResultRow",
    "SessionRecord",
    "SnapshotRecord",
]
