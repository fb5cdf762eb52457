import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from aiogram.types import Chat, Message, Update, User

from bot import CommandLoggingMiddleware


def _message(text: str) -> Message:
    return Message(
        message_id=1,
        date=datetime(2025, 1, 6, 12, tzinfo=timezone.utc),
        chat=Chat(id=42, type="private"),
        from_user=User(id=555, is_bot=False, first_name="Ann"),
        text=text,
    )


def _logged_ops(logger: MagicMock) -> list[tuple[str, str, int]]:
    return [
        (call.args[0], call.kwargs["extra"]["op"], call.kwargs["extra"]["user_id"])
        for call in logger.info.call_args_list
    ]


def test_command_message_is_logged_with_latency():
    logger = MagicMock()
    handler = AsyncMock(return_value="done")
    middleware = CommandLoggingMiddleware(logger)
    message = _message("/stats")

    result = asyncio.run(middleware(handler, message, {}))

    assert result == "done"
    handler.assert_awaited_once_with(message, {})
    assert _logged_ops(logger) == [
        ("command_start", "/stats", 555),
        ("command_complete", "/stats", 555),
    ]
    assert logger.info.call_args_list[1].kwargs["extra"]["latency_ms"] >= 0


def test_update_wrapping_a_command_is_unwrapped():
    logger = MagicMock()
    middleware = CommandLoggingMiddleware(logger)
    update = Update(update_id=7, message=_message("/help"))

    asyncio.run(middleware(AsyncMock(), update, {}))

    assert [op for _, op, _ in _logged_ops(logger)] == ["/help", "/help"]


def test_plain_text_is_not_logged():
    logger = MagicMock()
    handler = AsyncMock()
    middleware = CommandLoggingMiddleware(logger)

    asyncio.run(middleware(handler, _message("hello"), {}))

    handler.assert_awaited_once()
    logger.info.assert_not_called()
