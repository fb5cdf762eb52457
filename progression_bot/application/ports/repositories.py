"""Repository contracts for accessing persistent data."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from progression_bot.domain.models import (
    Athlete,
    Block,
    LedgerEntry,
    ResultRecord,
    Session,
    StatSnapshot,
)


class AthletesRepo(Protocol):
    """Provides access to athlete and staff profiles."""

    async def get(self, athlete_id: str) -> Optional[Athlete]:
        """Fetch an athlete by identifier."""

    async def get_by_telegram(self, telegram_id: int) -> Optional[Athlete]:
        """Lookup athlete by Telegram user id."""

    async def list_active(self) -> Sequence[Athlete]:
        """Return active accounts of every role."""

    async def upsert(self, athlete: Athlete) -> Athlete:
        """Create or update an athlete record."""


class ScheduleRepo(Protocol):
    """Stores blocks together with their generated sessions."""

    async def list_blocks(self, athlete_id: str) -> Sequence[Block]:
        """Return the athlete's blocks ordered by number."""

    async def list_sessions(self, athlete_id: str) -> Sequence[Session]:
        """Return every session of the athlete ordered by block, week, number."""

    async def get_session(self, session_id: str) -> Optional[Session]:
        """Fetch a single session by identifier."""

    async def add_block(self, block: Block, sessions: Sequence[Session]) -> None:
        """Insert a new block and its sessions atomically."""

    async def apply_reschedule(
        self,
        athlete_id: str,
        blocks: Sequence[Block],
        sessions: Sequence[Session],
    ) -> None:
        """Persist shifted blocks and release dates in one transaction."""


class ResultsRepo(Protocol):
    """Persists submitted and drafted session results."""

    async def get(self, athlete_id: str, session_id: str) -> Optional[ResultRecord]:
        """Fetch the result of one session."""

    async def list_by_athlete(self, athlete_id: str) -> Sequence[ResultRecord]:
        """Return every stored result of the athlete."""

    async def save(self, record: ResultRecord) -> ResultRecord:
        """Create or replace the result of a session."""


class LedgerRepo(Protocol):
    """Append-only XP ledger replaced wholesale on recomputation."""

    async def list_entries(self, athlete_id: str) -> Sequence[LedgerEntry]:
        """Return entries ordered by award time."""

    async def replace_entries(
        self, athlete_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        """Delete all entries of the athlete and insert ``entries`` atomically."""


class SnapshotsRepo(Protocol):
    """Cached per-athlete totals read by dashboards and leaderboards."""

    async def get(self, athlete_id: str) -> Optional[StatSnapshot]:
        """Fetch the snapshot of one athlete."""

    async def list_all(self) -> Sequence[StatSnapshot]:
        """Return every stored snapshot."""

    async def save(self, snapshot: StatSnapshot) -> StatSnapshot:
        """Create or replace the athlete's snapshot."""
