"""Rebuild XP ledgers and stat snapshots for every active athlete.

Safe to run repeatedly: ledgers are recomputed from results and schedules,
so a second run over unchanged data writes identical entries. Intended for
cron after config changes (award values, level thresholds) or data repairs.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from progression_bot.application.program_service import BatchReport, ProgramService
from progression_bot.infrastructure.program_config import load_program_config
from progression_bot.infrastructure.storage import StorageSettings, create_storage
from utils.logger import get_logger
from utils.sentry import init_sentry

logger = get_logger("recompute")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--athlete",
        action="append",
        dest="athletes",
        help="Limit the run to this athlete id (repeatable).",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Evaluate consistency as of this ISO date instead of now.",
    )
    return parser.parse_args(argv)


async def recompute(argv: Sequence[str] | None = None) -> BatchReport:
    """Run the batch against storage configured from the environment."""

    load_dotenv()
    init_sentry()
    args = parse_args(argv)

    now = None
    if args.as_of is not None:
        now = datetime.combine(args.as_of, time.max, tzinfo=timezone.utc)

    storage = await create_storage(StorageSettings.from_env())
    try:
        service = ProgramService(storage, load_program_config())
        report = await service.recompute_all(now=now, athlete_ids=args.athletes)
    finally:
        await storage.close()

    logger.info(
        "recompute_finished processed=%s failed=%s",
        len(report.processed),
        len(report.failures),
        extra={"op": "recompute_all"},
    )
    for athlete_id, reason in sorted(report.failures.items()):
        logger.warning(
            "recompute_failed reason=%s",
            reason,
            extra={"athlete_id": athlete_id, "op": "recompute_all"},
        )
    return report


def main(argv: Sequence[str] | None = None) -> int:
    report = asyncio.run(recompute(argv))
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
