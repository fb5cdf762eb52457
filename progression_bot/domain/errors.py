"""Error hierarchy raised by the program core."""

from __future__ import annotations

__all__ = [
    "ConcurrencyConflict",
    "IncompleteSubmission",
    "InvalidDuration",
    "NotFound",
    "ProgramError",
    "ScheduleConflict",
    "SessionLocked",
]


class ProgramError(Exception):
    """Base class for every error surfaced by the program core."""


class NotFound(ProgramError):
    """Unknown athlete, block or session."""

    def __init__(self, kind: str, identifier: object) -> None:
        super().__init__(f"{kind} {identifier!r} not found")
        self.kind = kind
        self.identifier = identifier


class InvalidDuration(ProgramError):
    """Block duration has no valid week layout."""


class ScheduleConflict(ProgramError):
    """Generated block would overlap an existing block."""


class IncompleteSubmission(ProgramError):
    """Result marked complete while required fields are missing."""

    def __init__(self, session_id: str, missing: tuple[str, ...]) -> None:
        joined = ", ".join(missing)
        super().__init__(f"session {session_id} is missing required fields: {joined}")
        self.session_id = session_id
        self.missing = missing


class ConcurrencyConflict(ProgramError):
    """Per-athlete lock could not be acquired in time; safe to retry."""

    def __init__(self, athlete_id: str) -> None:
        super().__init__(f"another operation is running for athlete {athlete_id!r}")
        self.athlete_id = athlete_id


class SessionLocked(ProgramError):
    """Result submitted before the session's release date."""

    def __init__(self, session_id: str, release_date: object) -> None:
        super().__init__(f"session {session_id} unlocks on {release_date}")
        self.session_id = session_id
        self.release_date = release_date
