from __future__ import annotations

from datetime import date, timedelta

import pytest

from progression_bot.domain.config import ProgramConfig
from progression_bot.domain.errors import NotFound, ScheduleConflict
from progression_bot.domain.schedule import generate_block, next_block_start, reschedule
from tests.factories import PROGRAM_START


def _three_blocks(config: ProgramConfig):
    blocks = []
    sessions = []
    start = PROGRAM_START
    for number, duration in enumerate((12, 14, 12), start=1):
        generated = generate_block(
            "ath-1", number, start, config, duration_weeks=duration, existing=blocks
        )
        blocks.append(generated.block)
        sessions.extend(generated.sessions)
        start = next_block_start(blocks)
    return blocks, sessions


def test_cascade_keeps_blocks_contiguous() -> None:
    config = ProgramConfig()
    blocks, sessions = _three_blocks(config)

    updated, _ = reschedule(blocks, sessions, 1, date(2025, 1, 13), config)

    assert [b.number for b in updated] == [1, 2, 3]
    assert updated[0].start_date == date(2025, 1, 13)
    for previous, following in zip(updated, updated[1:]):
        assert following.start_date == previous.end_date + timedelta(days=1)
    assert [b.duration_weeks for b in updated] == [12, 14, 12]


def test_session_ids_and_types_survive_reschedule() -> None:
    config = ProgramConfig()
    blocks, sessions = _three_blocks(config)

    _, moved = reschedule(blocks, sessions, 1, date(2025, 1, 20), config)

    before = {s.id: s for s in sessions}
    assert {s.id for s in moved} == set(before)
    for session in moved:
        original = before[session.id]
        assert session.session_type is original.session_type
        assert session.week_number == original.week_number
        assert session.release_date == original.release_date + timedelta(days=14)


def test_later_block_move_leaves_earlier_blocks_alone() -> None:
    config = ProgramConfig()
    blocks, sessions = _three_blocks(config)
    expected_start = blocks[0].end_date + timedelta(days=1)

    updated, moved = reschedule(blocks, sessions, 2, expected_start, config)

    assert [b.number for b in updated] == [2, 3]
    assert all(s.block_number in {2, 3} for s in moved)


def test_later_block_cannot_open_a_gap() -> None:
    config = ProgramConfig()
    blocks, sessions = _three_blocks(config)

    with pytest.raises(ScheduleConflict):
        reschedule(blocks, sessions, 2, blocks[1].start_date + timedelta(days=7), config)


def test_unknown_block_raises_not_found() -> None:
    config = ProgramConfig()
    blocks, sessions = _three_blocks(config)

    with pytest.raises(NotFound):
        reschedule(blocks, sessions, 9, PROGRAM_START, config)


def test_reschedule_does_not_mutate_inputs() -> None:
    config = ProgramConfig()
    blocks, sessions = _three_blocks(config)
    snapshot = (tuple(blocks), tuple(sessions))

    reschedule(blocks, sessions, 1, date(2025, 2, 3), config)

    assert (tuple(blocks), tuple(sessions)) == snapshot
