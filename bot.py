from __future__ import annotations

import asyncio
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Iterable

from aiogram import BaseMiddleware, Bot, Dispatcher
from aiogram.types import BotCommand, Message, TelegramObject, Update

from progression_bot.application.ports.storage import Storage
from progression_bot.application.program_service import ProgramService
from utils.logger import get_logger
from utils.sentry import init_sentry

logger = get_logger(__name__)

_SENTRY_ENABLED = init_sentry()
if _SENTRY_ENABLED:
    logger.info("Sentry successfully initialised")
else:
    logger.info("Sentry DSN not provided; Sentry disabled")


Handler = Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]]


class CommandLoggingMiddleware(BaseMiddleware):
    """Emit structured logs around command handler execution."""

    def __init__(self, logger_instance):
        self._logger = logger_instance

    async def __call__(
        self, handler: Handler, event: TelegramObject, data: Dict[str, Any]
    ) -> Any:
        message = event.message if isinstance(event, Update) else event
        if isinstance(message, Message) and message.text and message.text.startswith("/"):
            user = message.from_user
            user_id = user.id if user else None
            op = message.text.split()[0]
            start = perf_counter()
            self._logger.info(
                "command_start",
                extra={"user_id": user_id, "op": op, "latency_ms": None},
            )
            try:
                return await handler(event, data)
            finally:
                latency_ms = (perf_counter() - start) * 1000
                self._logger.info(
                    "command_complete",
                    extra={
                        "user_id": user_id,
                        "op": op,
                        "latency_ms": round(latency_ms, 2),
                    },
                )
        return await handler(event, data)


BOT_COMMANDS: dict[str, str] = {
    "start": "Start the bot",
    "help": "List commands",
    "schedule": "Show your training schedule",
    "submit": "Record a session result",
    "stats": "Level, XP and consistency",
    "progress": "Testing progress chart",
    "leaders": "Leaderboards",
}


def _build_bot_commands(descriptions: dict[str, str]) -> Iterable[BotCommand]:
    for command, description in descriptions.items():
        yield BotCommand(command=command, description=description)


async def configure_bot_commands(bot_instance: Bot) -> None:
    await bot_instance.set_my_commands(list(_build_bot_commands(BOT_COMMANDS)))


def setup_dispatcher(program_service: ProgramService, storage: Storage) -> Dispatcher:
    """Configure dispatcher with routers and shared services."""
    from handlers.common import router as common_router
    from handlers.error_handler import router as error_router
    from handlers.leaderboard import router as leaderboard_router
    from handlers.progress import router as progress_router
    from handlers.training import router as training_router
    from progression_bot.application.handlers.ping import router as ping_router

    dp = Dispatcher()
    dp.message.middleware(CommandLoggingMiddleware(logger))
    dp["program_service"] = program_service
    dp["storage"] = storage
    dp.include_router(common_router)
    dp.include_router(training_router)
    dp.include_router(progress_router)
    dp.include_router(leaderboard_router)
    dp.include_router(ping_router)
    dp.include_router(error_router)
    return dp


async def main() -> None:
    """Start the progression bot."""
    logger.info("[ProgressionBot] starting…")
    from progression_bot.infrastructure.storage import create_storage
    from services import get_bot, get_program_config, get_storage_settings

    bot = get_bot()
    storage = await create_storage(get_storage_settings())
    program_service = ProgramService(storage, get_program_config())
    dp = setup_dispatcher(program_service, storage)
    await configure_bot_commands(bot)
    try:
        await dp.start_polling(bot)
    finally:
        await storage.close()
        await bot.session.close()
        get_bot.cache_clear()


if __name__ == "__main__":
    asyncio.run(main())
