"""Healthcheck handler exposing storage statistics via Telegram."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from progression_bot.application.ports.storage import Storage

router = Router(name="progression_bot_ping")


@router.message(Command("ping"))
async def handle_ping(message: Message, storage: Storage) -> None:
    """Respond with aggregated storage snapshot to validate data access."""

    athletes = await storage.athletes.list_active()
    trainees = [athlete for athlete in athletes if athlete.is_trainee]
    snapshots = await storage.snapshots.list_all()
    if snapshots:
        top = max(snapshots, key=lambda s: (s.level, s.total_xp))
        text = (
            "PONG · "
            f"athletes={len(trainees)} · "
            f"staff={len(athletes) - len(trainees)} · "
            f"snapshots={len(snapshots)} · "
            f"top_level={top.level}"
        )
    else:
        text = f"PONG · athletes={len(trainees)} · snapshots=0"
    await message.answer(text)
