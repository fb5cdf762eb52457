"""Consistency score: share of released sessions an athlete completed."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Mapping

from .completion import ResultSchema
from .models import ResultRecord, Session, SessionState
from .state import session_state

__all__ = ["ConsistencyScore", "consistency", "measure_consistency"]


@dataclass(slots=True, frozen=True)
class ConsistencyScore:
    completed: int
    released: int
    score: float


def measure_consistency(
    sessions: Iterable[Session],
    results: Mapping[str, ResultRecord],
    now: date | datetime,
    *,
    precision: int = 2,
    schemas: Mapping[str, ResultSchema] | None = None,
) -> ConsistencyScore:
    """Count released and completed workable sessions at ``now``.

    Rest sessions never count. The score is ``0.0`` when nothing has been
    released yet.
    """

    released = 0
    completed = 0
    for session in sessions:
        if not session.is_workable:
            continue
        state = session_state(session, results.get(session.id), now, schemas)
        if state is SessionState.LOCKED:
            continue
        released += 1
        if state is SessionState.COMPLETED:
            completed += 1

    score = round(completed / released * 100, precision) if released else 0.0
    return ConsistencyScore(completed=completed, released=released, score=score)


def consistency(
    sessions: Iterable[Session],
    results: Mapping[str, ResultRecord],
    now: date | datetime,
    *,
    precision: int = 2,
    schemas: Mapping[str, ResultSchema] | None = None,
) -> float:
    """Return the consistency percentage in ``[0, 100]``."""

    return measure_consistency(
        sessions, results, now, precision=precision, schemas=schemas
    ).score
