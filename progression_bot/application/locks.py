"""Per-athlete serialisation of state-changing operations."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from progression_bot.domain.errors import ConcurrencyConflict

DEFAULT_LOCK_TIMEOUT = 10.0


class AthleteLocks:
    """Lazily created ``asyncio.Lock`` per athlete id.

    Acquisition is bounded by ``timeout`` seconds; contention past it raises
    :class:`ConcurrencyConflict` so callers can retry.
    """

    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def timeout(self) -> float:
        return self._timeout

    def _lock_for(self, athlete_id: str) -> asyncio.Lock:
        lock = self._locks.get(athlete_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[athlete_id] = lock
        return lock

    def locked(self, athlete_id: str) -> bool:
        lock = self._locks.get(athlete_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, athlete_id: str) -> AsyncIterator[None]:
        lock = self._lock_for(athlete_id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise ConcurrencyConflict(athlete_id) from None
        try:
            yield
        finally:
            lock.release()
