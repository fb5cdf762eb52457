"""Domain factories and sample payloads for progression bot tests."""

from __future__ import annotations

import datetime as dt
from typing import Any

import factory

from progression_bot.domain.completion import CURRENT_SCHEMA_VERSION, get_schema
from progression_bot.domain.models import (
    Athlete,
    AthleteRole,
    Block,
    ResultRecord,
    SessionType,
)

PROGRAM_START = dt.date(2025, 1, 6)

TRAINING_VALUES: dict[str, Any] = {
    "warmup_completed": True,
    "plyometrics": 7,
    "power": 6,
    "lower_body_strength": 8,
    "upper_body_core_strength": 7,
}

TESTING_VALUES: dict[str, Any] = {
    "standing_long_jump": 182.0,
    "single_leg_jump_left": 121.0,
    "single_leg_jump_right": 119.5,
    "wall_sit": 48.0,
    "high_plank": 62.0,
}


def at_noon(day: dt.date) -> dt.datetime:
    """Return a UTC moment in the middle of ``day``."""

    return dt.datetime(day.year, day.month, day.day, 12, tzinfo=dt.timezone.utc)


def logical_values(session_type: SessionType) -> dict[str, Any]:
    if session_type is SessionType.TESTING:
        return dict(TESTING_VALUES)
    return dict(TRAINING_VALUES)


class AthleteFactory(factory.Factory):
    """Factory building :class:`~progression_bot.domain.models.Athlete` entities."""

    id = factory.Sequence(lambda n: f"athlete-{n:04d}")
    display_name = factory.Faker("first_name")
    role = AthleteRole.TRAINEE
    telegram_id = factory.Sequence(lambda n: 10_000 + n)
    is_active = True

    class Meta:
        model = Athlete
        abstract = False


class BlockFactory(factory.Factory):
    """Factory constructing 12-week :class:`Block` values."""

    athlete_id = factory.Sequence(lambda n: f"athlete-{n:04d}")
    number = 1
    start_date = PROGRAM_START
    duration_weeks = 12
    end_date = factory.LazyAttribute(
        lambda obj: obj.start_date
        + dt.timedelta(weeks=obj.duration_weeks)
        - dt.timedelta(days=1)
    )

    class Meta:
        model = Block
        abstract = False


class ResultRecordFactory(factory.Factory):
    """Factory generating complete results stored under the current schema.

    Pass ``values`` to override the storage payload, or ``completed_at=None``
    for a draft.
    """

    athlete_id = factory.Sequence(lambda n: f"athlete-{n:04d}")
    session_id = factory.LazyAttribute(lambda obj: f"{obj.athlete_id}:b1:w1:s1")
    session_type = SessionType.TRAINING
    schema_version = CURRENT_SCHEMA_VERSION
    values = factory.LazyAttribute(
        lambda obj: get_schema(obj.schema_version).to_storage(
            obj.session_type, logical_values(obj.session_type)
        )
    )
    completed_at = factory.LazyFunction(lambda: at_noon(PROGRAM_START))

    class Meta:
        model = ResultRecord
        abstract = False
