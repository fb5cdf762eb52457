from __future__ import annotations

import asyncio
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from aiogram.filters import CommandObject

from handlers.common import NOT_ENROLLED_TEXT, cmd_help, cmd_start
from handlers.error_handler import INTERNAL_ERROR_TEXT, resolve_error_message
from handlers.leaderboard import LEADERS_USAGE, show_leaders
from handlers.progress import build_stats_lines, show_progress, show_stats
from handlers.training import (
    build_schedule_lines,
    parse_submit_arguments,
    show_schedule,
    submit_result,
)
from progression_bot.application.program_service import ProgramService
from progression_bot.domain.config import ProgramConfig
from progression_bot.domain.errors import (
    ConcurrencyConflict,
    IncompleteSubmission,
    NotFound,
    SessionLocked,
)
from progression_bot.domain.leveling import progress_to_next
from progression_bot.domain.models import StatSnapshot
from progression_bot.domain.xp import summarize
from tests.factories import PROGRAM_START, TESTING_VALUES, AthleteFactory, at_noon

TELEGRAM_ID = 555


class DummyMessage:
    def __init__(self, text: str = "", user_id: int = TELEGRAM_ID, chat_id: int = 42) -> None:
        self.text = text
        self.from_user = SimpleNamespace(id=user_id)
        self.chat = SimpleNamespace(id=chat_id)
        self.answer = AsyncMock(return_value=self)
        self.answer_photo = AsyncMock()
        self.edit_text = AsyncMock()


async def _enroll(service: ProgramService, athlete_id: str = "ath-1", **kwargs) -> None:
    kwargs.setdefault("telegram_id", TELEGRAM_ID)
    athlete = AthleteFactory(id=athlete_id, display_name="Ann", **kwargs)
    await service.enroll(athlete, PROGRAM_START, now=at_noon(PROGRAM_START))


def _command(args: str | None) -> CommandObject:
    return CommandObject(prefix="/", command="submit", args=args)


def test_unknown_user_is_told_to_enroll(program_service: ProgramService) -> None:
    message = DummyMessage("/schedule", user_id=1)

    asyncio.run(show_schedule(message, program_service))

    message.answer.assert_awaited_once_with(NOT_ENROLLED_TEXT)


def test_start_greets_enrolled_athlete(program_service: ProgramService) -> None:
    message = DummyMessage("/start")

    async def scenario() -> None:
        await _enroll(program_service)
        await cmd_start(message, program_service)

    asyncio.run(scenario())

    text = message.answer.await_args.args[0]
    assert text.startswith("Welcome back, Ann!")
    assert "/submit" in text


def test_help_lists_commands() -> None:
    message = DummyMessage("/help")

    asyncio.run(cmd_help(message))

    text = message.answer.await_args.args[0]
    for command in ("/schedule", "/submit", "/stats", "/progress", "/leaders"):
        assert command in text


def test_schedule_lists_block_weeks(program_service: ProgramService) -> None:
    message = DummyMessage("/schedule")

    async def scenario() -> None:
        await _enroll(program_service)
        await show_schedule(message, program_service)

    asyncio.run(scenario())

    text = message.answer.await_args.args[0]
    assert "Block 1: 06.01.2025 - 30.03.2025" in text
    assert "W7 rest: rest" in text
    assert "ath-1:b1:w5:s1" in text
    assert text.endswith("Completed 0/20 sessions")


def test_schedule_before_start_shows_first_upcoming_block(
    program_service: ProgramService,
) -> None:
    before_start = date(2025, 1, 1)

    async def scenario():
        athlete = AthleteFactory(id="ath-1", telegram_id=TELEGRAM_ID)
        await program_service.enroll(
            athlete, PROGRAM_START, blocks=2, now=at_noon(PROGRAM_START)
        )
        return await program_service.get_schedule("ath-1", at_noon(before_start))

    view = asyncio.run(scenario())
    lines = build_schedule_lines(view, before_start)

    assert view.current_block is None
    assert lines[0] == "Block 1: 06.01.2025 - 30.03.2025"
    assert build_schedule_lines(view, date(2026, 1, 1))[0].startswith("Block 2:")


def test_services_export_only_runtime_helpers() -> None:
    import services

    assert "ADMIN_IDS" not in services.__all__
    with pytest.raises(AttributeError):
        services.ADMIN_IDS


def test_submit_command_records_result(program_service: ProgramService) -> None:
    message = DummyMessage()
    args = (
        "ath-1:b1:w1:s1 warmup_completed=yes plyometrics=7 power=6 "
        "lower_body_strength=8 upper_body_core_strength=7"
    )

    async def scenario() -> None:
        await _enroll(program_service)
        await submit_result(message, _command(args), program_service)

    asyncio.run(scenario())

    text = message.answer.await_args.args[0]
    assert text.startswith("Session ath-1:b1:w1:s1 completed.")
    assert "XP 4" in text


def test_submit_command_saves_draft(program_service: ProgramService) -> None:
    message = DummyMessage()

    async def scenario() -> None:
        await _enroll(program_service)
        await submit_result(
            message, _command("ath-1:b1:w1:s1 power=6 draft=1"), program_service
        )

    asyncio.run(scenario())

    message.answer.assert_awaited_once_with("Draft saved for ath-1:b1:w1:s1.")


def test_submit_command_usage(program_service: ProgramService) -> None:
    message = DummyMessage()

    async def scenario() -> None:
        await _enroll(program_service)
        await submit_result(message, _command(None), program_service)

    asyncio.run(scenario())

    assert message.answer.await_args.args[0].startswith("Usage: /submit")


def test_parse_submit_arguments() -> None:
    session_id, fields, complete = parse_submit_arguments(
        "s-1 wall_sit=45,5 warmup_completed=no note=easy draft=yes"
    )

    assert session_id == "s-1"
    assert fields == {"wall_sit": 45.5, "warmup_completed": False, "note": "easy"}
    assert complete is False


@pytest.mark.parametrize("raw", ["", None, "s-1 power", "s-1 =3"])
def test_parse_submit_arguments_rejects_malformed(raw: str | None) -> None:
    with pytest.raises(ValueError):
        parse_submit_arguments(raw)


def test_stats_lines() -> None:
    snapshot = StatSnapshot(
        athlete_id="ath-1",
        total_xp=8,
        level=3,
        consistency_score=75.0,
        completed_sessions=3,
        released_sessions=4,
    )

    lines = build_stats_lines(
        snapshot, progress_to_next(8), summarize([], ProgramConfig())
    )

    assert lines[0] == "Level 3 · 8 XP"
    assert lines[1] == "2 XP to level 4 (50%)"
    assert lines[2] == "Consistency 75.00% (3/4 released sessions)"


def test_stats_command(program_service: ProgramService) -> None:
    message = DummyMessage("/stats")

    async def scenario() -> None:
        await _enroll(program_service)
        await program_service.submit_result(
            "ath-1",
            "ath-1:b1:w1:s1",
            {
                "warmup_completed": True,
                "plyometrics": 7,
                "power": 6,
                "lower_body_strength": 8,
                "upper_body_core_strength": 7,
            },
            at_noon(PROGRAM_START),
        )
        await show_stats(message, program_service)

    asyncio.run(scenario())

    text = message.answer.await_args.args[0]
    assert text.startswith("Level 2 · 4 XP")
    assert "Recent XP:" in text
    assert "+4 session complete (06.01.2025)" in text


def test_progress_without_results(program_service: ProgramService) -> None:
    message = DummyMessage("/progress")

    async def scenario() -> None:
        await _enroll(program_service)
        await show_progress(message, program_service)

    asyncio.run(scenario())

    message.answer.assert_awaited_once_with("No testing results recorded yet.")
    message.answer_photo.assert_not_awaited()


def test_progress_sends_chart(program_service: ProgramService) -> None:
    message = DummyMessage("/progress")

    async def scenario() -> None:
        await _enroll(program_service)
        await program_service.submit_result(
            "ath-1", "ath-1:b1:w5:s1", TESTING_VALUES, at_noon(date(2025, 2, 3))
        )
        await show_progress(message, program_service)

    asyncio.run(scenario())

    message.answer_photo.assert_awaited_once()
    caption = message.answer_photo.await_args.kwargs["caption"]
    assert caption.startswith("Testing progress:")
    assert "Wall sit (s): 48" in caption


def test_leaders_command_edits_loading_message(program_service: ProgramService) -> None:
    message = DummyMessage("/leaders consistency")

    async def scenario() -> None:
        await _enroll(program_service)
        await _enroll(program_service, "ath-2", telegram_id=777)
        await show_leaders(message, program_service)

    asyncio.run(scenario())

    message.answer.assert_awaited_once_with("Loading leaderboard…")
    text = message.edit_text.await_args.args[0]
    assert text.startswith("📅 Consistency leaderboard")
    assert "1. Ann (you)" in text


def test_leaders_command_rejects_unknown_board(program_service: ProgramService) -> None:
    message = DummyMessage("/leaders speed")

    asyncio.run(show_leaders(message, program_service))

    message.answer.assert_awaited_once_with(LEADERS_USAGE)


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (NotFound("session", "s-9"), "Unknown session: s-9"),
        (
            IncompleteSubmission("s-1", ("power", "plyometrics")),
            "Missing required fields: power, plyometrics",
        ),
        (SessionLocked("s-1", date(2025, 1, 7)), "This session unlocks on 07.01.2025."),
        (ValueError("bad"), "Invalid input: bad"),
        (RuntimeError("boom"), INTERNAL_ERROR_TEXT),
    ],
)
def test_resolve_error_message(exc: BaseException, expected: str) -> None:
    assert resolve_error_message(exc) == expected


def test_concurrency_conflict_message_suggests_retry() -> None:
    assert "Try again" in resolve_error_message(ConcurrencyConflict("ath-1"))
