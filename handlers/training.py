from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from aiogram import Router, types
from aiogram.filters import Command, CommandObject

from handlers.common import resolve_athlete
from progression_bot.application.program_service import ProgramService
from progression_bot.domain.models import (
    BlockView,
    ScheduleView,
    SessionState,
    SessionType,
)
from utils import fmt_date

router = Router()

_STATE_MARKS = {
    SessionState.LOCKED: "🔒",
    SessionState.AVAILABLE: "▶️",
    SessionState.COMPLETED: "✅",
}

SUBMIT_USAGE = (
    "Usage: /submit <session_id> field=value ...\n"
    "Add draft=1 to save without completing the session."
)


def _block_lines(block: BlockView) -> list[str]:
    lines = [
        f"Block {block.number}: {fmt_date(block.start_date)} - {fmt_date(block.end_date)}"
    ]
    for week in block.weeks:
        marks = " ".join(
            f"{_STATE_MARKS[s.state]} {s.session_id}"
            for s in week.sessions
            if s.session_type is not SessionType.REST
        )
        lines.append(f"W{week.number} {week.kind.value}: {marks or 'rest'}")
    return lines


def build_schedule_lines(schedule: ScheduleView, today: date) -> list[str]:
    """Render the current block, or the next upcoming one, as text lines.

    After the last block has ended the last block is shown.
    """

    if not schedule.blocks:
        return ["No blocks scheduled yet."]
    upcoming = next((b for b in schedule.blocks if b.start_date > today), None)
    block = schedule.current_block or upcoming or schedule.blocks[-1]
    sessions = schedule.sessions()
    completed = sum(1 for s in sessions if s.state is SessionState.COMPLETED)
    workable = sum(1 for s in sessions if s.session_type is not SessionType.REST)
    return [*_block_lines(block), "", f"Completed {completed}/{workable} sessions"]


def parse_submit_arguments(raw: str | None) -> tuple[str, dict[str, Any], bool]:
    """Split ``/submit`` arguments into session id, fields and completion flag.

    Raises:
        ValueError: If the session id or a ``key=value`` pair is malformed.
    """

    parts = (raw or "").split()
    if not parts:
        raise ValueError(SUBMIT_USAGE)
    session_id, *pairs = parts
    fields: dict[str, Any] = {}
    complete = True
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Malformed argument {pair!r}. {SUBMIT_USAGE}")
        if key == "draft":
            complete = value.strip().lower() not in {"1", "true", "yes"}
            continue
        fields[key] = _coerce_value(value)
    return session_id, fields, complete


def _coerce_value(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered in {"yes", "true"}:
        return True
    if lowered in {"no", "false"}:
        return False
    try:
        return float(value.replace(",", "."))
    except ValueError:
        return value


@router.message(Command("schedule"))
async def show_schedule(message: types.Message, program_service: ProgramService) -> None:
    athlete = await resolve_athlete(message, program_service)
    if athlete is None:
        return
    now = datetime.now(timezone.utc)
    schedule = await program_service.get_schedule(athlete.id, now)
    await message.answer("\n".join(build_schedule_lines(schedule, now.date())))


@router.message(Command("submit"))
async def submit_result(
    message: types.Message, command: CommandObject, program_service: ProgramService
) -> None:
    athlete = await resolve_athlete(message, program_service)
    if athlete is None:
        return
    try:
        session_id, fields, complete = parse_submit_arguments(command.args)
    except ValueError as exc:
        await message.answer(str(exc))
        return

    record = await program_service.submit_result(
        athlete.id,
        session_id,
        fields,
        datetime.now(timezone.utc),
        complete=complete,
    )
    if record.is_draft:
        await message.answer(f"Draft saved for {session_id}.")
        return
    stats = await program_service.get_stats(athlete.id)
    await message.answer(
        f"Session {session_id} completed. "
        f"XP {stats.total_xp} · level {stats.level} · consistency {stats.consistency_score:.2f}%"
    )
