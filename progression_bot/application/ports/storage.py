"""Storage abstraction combining repositories behind a single backend."""

from __future__ import annotations

from typing import Protocol

from .repositories import (
    AthletesRepo,
    LedgerRepo,
    ResultsRepo,
    ScheduleRepo,
    SnapshotsRepo,
)


class Storage(Protocol):
    """Provides access to persistence backends grouped under a single facade."""

    @property
    def athletes(self) -> AthletesRepo:
        """Return repository managing athlete entities."""

    @property
    def schedule(self) -> ScheduleRepo:
        """Return repository managing blocks and sessions."""

    @property
    def results(self) -> ResultsRepo:
        """Return repository managing session results."""

    @property
    def ledger(self) -> LedgerRepo:
        """Return repository managing XP ledger entries."""

    @property
    def snapshots(self) -> SnapshotsRepo:
        """Return repository managing stat snapshots."""

    async def init(self) -> None:
        """Initialise underlying connections or schemas if needed."""

    async def close(self) -> None:
        """Release any allocated resources (connections, pools, caches)."""
