from __future__ import annotations

from aiogram import Router, types
from aiogram.filters import Command

from progression_bot.application.program_service import ProgramService
from progression_bot.domain.models import Athlete

router = Router()

NOT_ENROLLED_TEXT = (
    "You are not enrolled in the training program yet. Ask your coach to add you."
)

HELP_TEXT = "\n".join(
    [
        "Available commands:",
        "/schedule - current block and session states",
        "/submit <session_id> key=value ... - record a session result",
        "/stats - level, XP and consistency",
        "/progress - testing results over time",
        "/leaders strength|consistency - leaderboards",
    ]
)


async def resolve_athlete(
    message: types.Message, program_service: ProgramService
) -> Athlete | None:
    """Return the athlete linked to the sender, answering when there is none."""

    user = message.from_user
    athlete = (
        await program_service.find_athlete_by_telegram(user.id) if user else None
    )
    if athlete is None:
        await message.answer(NOT_ENROLLED_TEXT)
    return athlete


@router.message(Command("start"))
async def cmd_start(message: types.Message, program_service: ProgramService) -> None:
    athlete = await resolve_athlete(message, program_service)
    if athlete is None:
        return
    await message.answer(f"Welcome back, {athlete.display_name}!\n\n{HELP_TEXT}")


@router.message(Command("help"))
async def cmd_help(message: types.Message) -> None:
    await message.answer(HELP_TEXT)
