"""Domain layer: schedule, completion, XP and ranking rules."""

from . import (
    completion,
    config,
    consistency,
    leaderboard,
    leveling,
    models,
    progress,
    schedule,
    state,
    xp,
)

__all__ = [
    "completion",
    "config",
    "consistency",
    "leaderboard",
    "leveling",
    "models",
    "progress",
    "schedule",
    "state",
    "xp",
]
