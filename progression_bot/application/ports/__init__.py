"""Ports define the contracts between application layer and adapters."""

from .repositories import (
    AthletesRepo,
    LedgerRepo,
    ResultsRepo,
    ScheduleRepo,
    SnapshotsRepo,
)
from .storage import Storage

__all__ = [
    "AthletesRepo",
    "LedgerRepo",
    "ResultsRepo",
    "ScheduleRepo",
    "SnapshotsRepo",
    "Storage",
]
