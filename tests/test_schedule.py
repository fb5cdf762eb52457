from __future__ import annotations

from datetime import date

import pytest

from progression_bot.domain.config import ProgramConfig, WeekLayout
from progression_bot.domain.errors import InvalidDuration, ScheduleConflict
from progression_bot.domain.models import SessionType, WeekKind
from progression_bot.domain.schedule import (
    block_end_date,
    classify_week,
    generate_block,
    next_block_start,
    week_kinds,
)
from tests.factories import PROGRAM_START


def test_twelve_week_block_layout() -> None:
    config = ProgramConfig()

    generated = generate_block("ath-1", 1, PROGRAM_START, config)

    block = generated.block
    assert block.start_date == date(2025, 1, 6)
    assert block.end_date == date(2025, 3, 30)
    assert block.duration_weeks == 12
    assert len(generated.workable_sessions) == 20

    testing_weeks = {
        s.week_number
        for s in generated.sessions
        if s.session_type is SessionType.TESTING
    }
    rest_weeks = {
        s.week_number for s in generated.sessions if s.session_type is SessionType.REST
    }
    assert testing_weeks == {5, 10}
    assert rest_weeks == {7}


def test_training_weeks_hold_two_sessions_and_testing_weeks_one() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())

    per_week: dict[int, list[SessionType]] = {}
    for session in generated.workable_sessions:
        per_week.setdefault(session.week_number, []).append(session.session_type)

    assert per_week[1] == [SessionType.TRAINING, SessionType.TRAINING]
    assert per_week[5] == [SessionType.TESTING]
    assert 7 not in per_week


def test_release_dates_follow_week_offsets() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())
    by_id = {s.id: s for s in generated.sessions}

    assert by_id["ath-1:b1:w1:s1"].release_date == date(2025, 1, 6)
    assert by_id["ath-1:b1:w1:s2"].release_date == date(2025, 1, 7)
    assert by_id["ath-1:b1:w5:s1"].release_date == date(2025, 2, 3)
    assert by_id["ath-1:b1:w12:s2"].release_date == date(2025, 3, 25)


def test_sessions_fall_inside_their_block() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())

    assert all(generated.block.contains(s.release_date) for s in generated.sessions)


def test_rest_placeholders_can_be_disabled() -> None:
    config = ProgramConfig(rest_placeholders=False)

    generated = generate_block("ath-1", 1, PROGRAM_START, config)

    assert len(generated.sessions) == 20
    assert not any(s.session_type is SessionType.REST for s in generated.sessions)


def test_legacy_fourteen_week_layout() -> None:
    kinds = week_kinds(14, ProgramConfig())

    assert kinds[5] is WeekKind.TESTING
    assert kinds[12] is WeekKind.TESTING
    assert kinds[6] is WeekKind.REST
    assert kinds[13] is WeekKind.REST
    assert kinds.count(WeekKind.TRAINING) == 10


def test_rest_wins_when_layout_lists_week_twice() -> None:
    layout = WeekLayout(testing_weeks=frozenset({3}), rest_weeks=frozenset({3}))

    assert classify_week(3, layout) is WeekKind.REST


@pytest.mark.parametrize("duration", [0, -4, 13, 2.5, True])
def test_invalid_duration_rejected(duration: object) -> None:
    with pytest.raises(InvalidDuration):
        generate_block(
            "ath-1", 1, PROGRAM_START, ProgramConfig(), duration_weeks=duration  # type: ignore[arg-type]
        )


def test_layout_outside_block_rejected() -> None:
    config = ProgramConfig(
        layouts={4: WeekLayout(testing_weeks=frozenset({5}), rest_weeks=frozenset())}
    )

    with pytest.raises(InvalidDuration):
        generate_block("ath-1", 1, PROGRAM_START, config, duration_weeks=4)


def test_overlapping_block_rejected() -> None:
    config = ProgramConfig()
    first = generate_block("ath-1", 1, PROGRAM_START, config)

    with pytest.raises(ScheduleConflict):
        generate_block(
            "ath-1", 2, date(2025, 3, 1), config, existing=[first.block]
        )


def test_duplicate_block_number_rejected() -> None:
    config = ProgramConfig()
    first = generate_block("ath-1", 1, PROGRAM_START, config)

    with pytest.raises(ScheduleConflict):
        generate_block("ath-1", 1, date(2026, 1, 5), config, existing=[first.block])


def test_gap_after_previous_block_rejected() -> None:
    config = ProgramConfig()
    first = generate_block("ath-1", 1, PROGRAM_START, config)

    with pytest.raises(ScheduleConflict):
        generate_block("ath-1", 2, date(2025, 4, 7), config, existing=[first.block])


def test_next_block_starts_day_after_previous_end() -> None:
    config = ProgramConfig()
    first = generate_block("ath-1", 1, PROGRAM_START, config)

    start = next_block_start([first.block])
    second = generate_block("ath-1", 2, start, config, existing=[first.block])

    assert start == date(2025, 3, 31)
    assert second.block.end_date == block_end_date(start, 12)
    assert next_block_start([]) is None
