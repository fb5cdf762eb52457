"""Tie-aware leaderboard ranking.

Ranks follow standard competition ranking: athletes with equal sort keys
share a rank and the next distinct key skips the shared places, so three
athletes where the first two tie are ranked ``1, 1, 3``.

>>> rows = rank_strength(
...     [
...         StrengthStanding("a", "A", level=3, xp=10),
...         StrengthStanding("b", "B", level=3, xp=10),
...         StrengthStanding("c", "C", level=2, xp=20),
...     ]
... )
>>> [(row.athlete_id, row.rank) for row in rows]
[('a', 1), ('b', 1), ('c', 3)]
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Hashable, Optional, Sequence, TypeVar

__all__ = [
    "ConsistencyStanding",
    "LeaderboardEntry",
    "LeaderboardKind",
    "StrengthStanding",
    "competition_ranks",
    "rank_consistency",
    "rank_strength",
]

T = TypeVar("T")


class LeaderboardKind(str, Enum):
    STRENGTH = "strength"
    CONSISTENCY = "consistency"


@dataclass(slots=True, frozen=True)
class StrengthStanding:
    athlete_id: str
    display_name: str
    level: int
    xp: int


@dataclass(slots=True, frozen=True)
class ConsistencyStanding:
    athlete_id: str
    display_name: str
    consistency: float
    completed: int


@dataclass(slots=True, frozen=True)
class LeaderboardEntry:
    """One ranked leaderboard row.

    ``primary``/``secondary`` hold the two components of the sort key: level
    and XP for the strength board, consistency and completed sessions for
    the consistency board.
    """

    rank: int
    athlete_id: str
    display_name: str
    primary: float
    secondary: float
    is_you: bool = False


def competition_ranks(
    items: Sequence[T], key: Callable[[T], Hashable]
) -> list[tuple[int, T]]:
    """Assign competition ranks to ``items`` already sorted best first."""

    ranked: list[tuple[int, T]] = []
    previous: object = object()
    rank = 0
    for position, item in enumerate(items, start=1):
        current = key(item)
        if current != previous:
            rank = position
            previous = current
        ranked.append((rank, item))
    return ranked


def _finalise(
    ranked: list[tuple[int, LeaderboardEntry]],
    requester_id: Optional[str],
    limit: Optional[int],
) -> list[LeaderboardEntry]:
    rows = [
        LeaderboardEntry(
            rank=rank,
            athlete_id=row.athlete_id,
            display_name=row.display_name,
            primary=row.primary,
            secondary=row.secondary,
            is_you=requester_id is not None and row.athlete_id == requester_id,
        )
        for rank, row in ranked
    ]
    if limit is None or limit >= len(rows):
        return rows
    visible = rows[: max(limit, 0)]
    if requester_id is not None and not any(row.is_you for row in visible):
        visible.extend(row for row in rows[len(visible):] if row.is_you)
    return visible


def rank_strength(
    standings: Sequence[StrengthStanding],
    *,
    requester_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[LeaderboardEntry]:
    """Rank by level then XP, both descending.

    When ``limit`` cuts the requester off, their row is appended after the
    visible rows with its true rank.
    """

    ordered = sorted(standings, key=lambda s: (-s.level, -s.xp, s.athlete_id))
    ranked = competition_ranks(ordered, key=lambda s: (s.level, s.xp))
    rows = [
        (
            rank,
            LeaderboardEntry(
                rank=rank,
                athlete_id=s.athlete_id,
                display_name=s.display_name,
                primary=s.level,
                secondary=s.xp,
            ),
        )
        for rank, s in ranked
    ]
    return _finalise(rows, requester_id, limit)


def rank_consistency(
    standings: Sequence[ConsistencyStanding],
    *,
    requester_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[LeaderboardEntry]:
    """Rank by consistency then completed sessions, both descending."""

    ordered = sorted(
        standings, key=lambda s: (-s.consistency, -s.completed, s.athlete_id)
    )
    ranked = competition_ranks(ordered, key=lambda s: (s.consistency, s.completed))
    rows = [
        (
            rank,
            LeaderboardEntry(
                rank=rank,
                athlete_id=s.athlete_id,
                display_name=s.display_name,
                primary=s.consistency,
                secondary=s.completed,
            ),
        )
        for rank, s in ranked
    ]
    return _finalise(rows, requester_id, limit)
