"""Program configuration: week layouts, XP awards and level thresholds.

Award amounts and thresholds changed several times over the program's
history, so they are data on :class:`ProgramConfig` rather than constants at
call sites. A single instance is built at startup and passed explicitly.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping

from .completion import CURRENT_SCHEMA_VERSION, SCHEMAS
from .errors import InvalidDuration

__all__ = [
    "DEFAULT_LAYOUTS",
    "DEFAULT_LEVEL_THRESHOLDS",
    "ProgramConfig",
    "WeekLayout",
    "XpAwards",
]


@dataclass(slots=True, frozen=True)
class WeekLayout:
    """Testing and rest week numbers for one block duration."""

    testing_weeks: frozenset[int]
    rest_weeks: frozenset[int]

    def validate(self, duration_weeks: int) -> None:
        outside = sorted(
            week
            for week in self.testing_weeks | self.rest_weeks
            if not 1 <= week <= duration_weeks
        )
        if outside:
            raise InvalidDuration(
                f"layout weeks {outside} fall outside a {duration_weeks}-week block"
            )


@dataclass(slots=True, frozen=True)
class XpAwards:
    """XP granted per ledger source."""

    training_session: int = 4
    testing_session: int = 8
    week_complete: int = 3
    testing_bonus: int = 5
    period_complete: int = 12
    consistency_bonus: int = 0


DEFAULT_LAYOUTS: Mapping[int, WeekLayout] = {
    12: WeekLayout(testing_weeks=frozenset({5, 10}), rest_weeks=frozenset({7})),
    # Legacy blocks created before the move to 12 weeks.
    14: WeekLayout(testing_weeks=frozenset({6, 13}), rest_weeks=frozenset({7, 14})),
}

# Triangular progression: level n needs n more XP than level n - 1.
DEFAULT_LEVEL_THRESHOLDS: tuple[int, ...] = (0, 3, 6, 10, 15, 21, 28, 36, 45, 55)


@dataclass(slots=True, frozen=True)
class ProgramConfig:
    """Everything the core needs to know that is not entity state."""

    block_duration_weeks: int = 12
    layouts: Mapping[int, WeekLayout] = field(
        default_factory=lambda: dict(DEFAULT_LAYOUTS)
    )
    second_session_offset_days: int = 1
    rest_placeholders: bool = True
    period_weeks: int = 4
    awards: XpAwards = field(default_factory=XpAwards)
    level_thresholds: tuple[int, ...] = DEFAULT_LEVEL_THRESHOLDS
    consistency_precision: int = 2
    result_schema_version: str = CURRENT_SCHEMA_VERSION
    lock_timeout: float = 10.0

    def __post_init__(self) -> None:
        thresholds = self.level_thresholds
        if not thresholds:
            raise ValueError("level_thresholds must not be empty")
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError("level_thresholds must be strictly ascending")
        if self.period_weeks <= 0:
            raise ValueError("period_weeks must be positive")
        if self.second_session_offset_days < 0:
            raise ValueError("second_session_offset_days must not be negative")
        if self.lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")
        if self.result_schema_version not in SCHEMAS:
            raise ValueError(
                f"unknown result schema version: {self.result_schema_version!r}"
            )

    def layout_for(self, duration_weeks: Any) -> WeekLayout:
        """Return the week layout for ``duration_weeks``.

        Raises:
            InvalidDuration: For non-positive or unconfigured durations.
        """

        if (
            isinstance(duration_weeks, bool)
            or not isinstance(duration_weeks, int)
            or duration_weeks <= 0
        ):
            raise InvalidDuration(
                f"duration must be a positive integer, got {duration_weeks!r}"
            )
        layout = self.layouts.get(duration_weeks)
        if layout is None:
            raise InvalidDuration(
                f"no week layout configured for {duration_weeks}-week blocks"
            )
        layout.validate(duration_weeks)
        return layout

    def replace(self, **changes: Any) -> "ProgramConfig":
        """Return a copy with ``changes`` applied."""

        return dataclasses.replace(self, **changes)
