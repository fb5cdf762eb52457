"""Mapping of cumulative XP onto discrete strength levels."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import DEFAULT_LEVEL_THRESHOLDS

__all__ = ["LevelProgress", "level_of", "progress_to_next"]


@dataclass(slots=True, frozen=True)
class LevelProgress:
    """Position of an XP total inside the threshold table."""

    xp: int
    level: int
    next_level: Optional[int]
    current_threshold: int
    next_threshold: Optional[int]
    xp_needed: int
    percentage: float

    @property
    def is_max(self) -> bool:
        return self.next_level is None


def level_of(xp: int, thresholds: Sequence[int] = DEFAULT_LEVEL_THRESHOLDS) -> int:
    """Return the highest level whose threshold is ``<= xp``.

    Totals below the first threshold still map to level 1.

    >>> level_of(0), level_of(5), level_of(6), level_of(1000)
    (1, 2, 3, 10)
    """

    return max(1, bisect_right(thresholds, xp))


def progress_to_next(
    xp: int, thresholds: Sequence[int] = DEFAULT_LEVEL_THRESHOLDS
) -> LevelProgress:
    """Describe how far ``xp`` is between the current and the next level."""

    level = level_of(xp, thresholds)
    current = thresholds[level - 1]
    if level >= len(thresholds):
        return LevelProgress(
            xp=xp,
            level=level,
            next_level=None,
            current_threshold=current,
            next_threshold=None,
            xp_needed=0,
            percentage=100.0,
        )

    upcoming = thresholds[level]
    ratio = (xp - current) / (upcoming - current) * 100
    return LevelProgress(
        xp=xp,
        level=level,
        next_level=level + 1,
        current_threshold=current,
        next_threshold=upcoming,
        xp_needed=max(0, upcoming - xp),
        percentage=round(min(100.0, max(0.0, ratio)), 1),
    )
