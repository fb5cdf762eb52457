from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from aiogram import Router, types
from aiogram.filters import Command
from aiogram.types import BufferedInputFile

from handlers.common import resolve_athlete
from progression_bot.application.program_service import ProgramService
from progression_bot.domain.leveling import LevelProgress
from progression_bot.domain.models import StatSnapshot
from progression_bot.domain.progress import MetricProgress
from progression_bot.domain.xp import XpSummary
from reports.charts import METRIC_TITLES, build_progress_chart
from utils import fmt_date, fmt_percent

router = Router()
logger = logging.getLogger(__name__)


def build_stats_lines(
    snapshot: StatSnapshot, progress: LevelProgress, summary: XpSummary
) -> list[str]:
    lines = [
        f"Level {progress.level} · {snapshot.total_xp} XP",
    ]
    if progress.is_max:
        lines.append("Maximum level reached")
    else:
        lines.append(
            f"{progress.xp_needed} XP to level {progress.next_level} "
            f"({fmt_percent(progress.percentage / 100)})"
        )
    lines.append(
        f"Consistency {snapshot.consistency_score:.2f}% "
        f"({snapshot.completed_sessions}/{snapshot.released_sessions} released sessions)"
    )
    if summary.recent:
        lines.append("")
        lines.append("Recent XP:")
        for entry in summary.recent[:5]:
            lines.append(
                f"+{entry.amount} {entry.source.value.replace('_', ' ')} "
                f"({fmt_date(entry.awarded_at)})"
            )
    return lines


def build_progress_lines(metrics: Sequence[MetricProgress]) -> list[str]:
    lines = ["Testing progress:"]
    for metric in metrics:
        title = METRIC_TITLES.get(metric.metric, metric.metric)
        first, last = metric.points[0], metric.points[-1]
        change = metric.change_percentage
        suffix = f" ({change:+.1f}%)" if change is not None else ""
        if len(metric.points) == 1:
            lines.append(f"• {title}: {first.value:g} [{first.label}]")
        else:
            lines.append(f"• {title}: {first.value:g} → {last.value:g}{suffix}")
    return lines


@router.message(Command("stats"))
async def show_stats(message: types.Message, program_service: ProgramService) -> None:
    athlete = await resolve_athlete(message, program_service)
    if athlete is None:
        return
    snapshot = await program_service.get_stats(athlete.id)
    progress = await program_service.get_level_progress(athlete.id)
    summary = await program_service.get_xp_summary(athlete.id)
    await message.answer("\n".join(build_stats_lines(snapshot, progress, summary)))


@router.message(Command("progress"))
async def show_progress(message: types.Message, program_service: ProgramService) -> None:
    athlete = await resolve_athlete(message, program_service)
    if athlete is None:
        return
    metrics = await program_service.get_progress(athlete.id)
    if not metrics:
        await message.answer("No testing results recorded yet.")
        return

    text = "\n".join(build_progress_lines(metrics))
    try:
        chart = await asyncio.to_thread(build_progress_chart, metrics)
    except ValueError:
        logger.warning("Progress chart skipped for %s", athlete.id)
        await message.answer(text)
        return
    await message.answer_photo(
        BufferedInputFile(chart, filename="progress.png"), caption=text
    )
