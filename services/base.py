"""Process-wide service initialisation utilities."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from dotenv import load_dotenv

from progression_bot.domain.config import ProgramConfig
from progression_bot.infrastructure.program_config import load_program_config
from progression_bot.infrastructure.storage import StorageSettings

# --- Environment setup ---
load_dotenv()

logger = logging.getLogger(__name__)

# --- Bot Initialization ---


@lru_cache(maxsize=1)
def get_bot() -> Bot:
    """Return a cached aiogram Bot instance configured for the project."""

    token = os.getenv("BOT_TOKEN", "").strip()
    if not token:
        raise RuntimeError(
            "BOT_TOKEN environment variable must be set and non-empty to create the bot."
        )
    return Bot(token=token, default=DefaultBotProperties(parse_mode="HTML"))


@lru_cache(maxsize=1)
def get_program_config() -> ProgramConfig:
    """Return the program configuration loaded once from the environment."""

    config = load_program_config()
    logger.info(
        "Program config loaded: %s-week blocks, schema %s",
        config.block_duration_weeks,
        config.result_schema_version,
    )
    return config


def get_storage_settings() -> StorageSettings:
    return StorageSettings.from_env()

