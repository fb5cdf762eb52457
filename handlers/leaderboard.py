from __future__ import annotations

from typing import Sequence

from aiogram import Router, types
from aiogram.filters import Command

from progression_bot.application.program_service import ProgramService
from progression_bot.domain.leaderboard import LeaderboardEntry, LeaderboardKind

router = Router()

LEADERBOARD_LIMIT = 10

LEADERS_USAGE = "Usage: /leaders strength or /leaders consistency"

_TITLES = {
    LeaderboardKind.STRENGTH: "🏋️ Strength leaderboard",
    LeaderboardKind.CONSISTENCY: "📅 Consistency leaderboard",
}


def _format_value(entry: LeaderboardEntry, kind: LeaderboardKind) -> str:
    if kind is LeaderboardKind.STRENGTH:
        return f"level {int(entry.primary)} · {int(entry.secondary)} XP"
    return f"{entry.primary:.2f}% · {int(entry.secondary)} sessions"


def build_leaderboard_lines(
    entries: Sequence[LeaderboardEntry], kind: LeaderboardKind
) -> list[str]:
    lines = [_TITLES[kind]]
    for entry in entries:
        marker = " (you)" if entry.is_you else ""
        lines.append(
            f"{entry.rank}. {entry.display_name}{marker} - {_format_value(entry, kind)}"
        )
    return lines


def _parse_kind(message: types.Message) -> LeaderboardKind | None:
    text = (message.text or "").strip()
    parts = text.split(maxsplit=1)
    if len(parts) < 2:
        return LeaderboardKind.STRENGTH
    try:
        return LeaderboardKind(parts[1].strip().lower())
    except ValueError:
        return None


@router.message(Command("leaders"))
async def show_leaders(message: types.Message, program_service: ProgramService) -> None:
    kind = _parse_kind(message)
    if kind is None:
        await message.answer(LEADERS_USAGE)
        return

    user = message.from_user
    requester = (
        await program_service.find_athlete_by_telegram(user.id) if user else None
    )
    progress_msg = await message.answer("Loading leaderboard…")
    entries = await program_service.get_leaderboard(
        kind,
        requester_id=requester.id if requester else None,
        limit=LEADERBOARD_LIMIT,
    )
    if not entries:
        await progress_msg.edit_text("Nobody is on the leaderboard yet.")
        return

    await progress_msg.edit_text("\n".join(build_leaderboard_lines(entries, kind)))
