from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from progression_bot.application.program_service import ProgramService
from progression_bot.domain.config import ProgramConfig
from progression_bot.infrastructure.storage.memory import MemoryStorage

os.environ.setdefault("BOT_TOKEN", "123456:TESTTOKEN")


@pytest.fixture
def program_config() -> ProgramConfig:
    return ProgramConfig()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Return an initialised in-memory storage."""

    storage = MemoryStorage()
    asyncio.run(storage.init())
    return storage


@pytest.fixture
def program_service(
    memory_storage: MemoryStorage, program_config: ProgramConfig
) -> ProgramService:
    return ProgramService(memory_storage, program_config)
