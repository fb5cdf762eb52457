import asyncio
import logging
from typing import Iterable

from aiogram import F, Router, types
from aiogram.exceptions import TelegramAPIError
from aiogram.filters.exception import ExceptionTypeFilter

from progression_bot.domain.errors import (
    ConcurrencyConflict,
    IncompleteSubmission,
    InvalidDuration,
    NotFound,
    ScheduleConflict,
    SessionLocked,
)
from utils import fmt_date
from utils.sentry import capture_exception as sentry_capture_exception

router = Router()
logger = logging.getLogger(__name__)

INTERNAL_ERROR_TEXT = "Something went wrong. Please try again later."

_EXPECTED_ERRORS: tuple[type[BaseException], ...] = (
    NotFound,
    IncompleteSubmission,
    SessionLocked,
    ConcurrencyConflict,
    InvalidDuration,
    ScheduleConflict,
    ValueError,
)


def resolve_error_message(exc: BaseException) -> str:
    if isinstance(exc, NotFound):
        return f"Unknown {exc.kind}: {exc.identifier}"
    if isinstance(exc, IncompleteSubmission):
        return "Missing required fields: " + ", ".join(exc.missing)
    if isinstance(exc, SessionLocked):
        return f"This session unlocks on {fmt_date(exc.release_date)}."
    if isinstance(exc, ConcurrencyConflict):
        return "Your previous request is still being processed. Try again in a moment."
    if isinstance(exc, (InvalidDuration, ScheduleConflict)):
        return f"Schedule error: {exc}"
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return "The request timed out. Please try again."
    if isinstance(exc, ValueError):
        return f"Invalid input: {exc}"
    return INTERNAL_ERROR_TEXT


async def _reply_to_user(event: types.ErrorEvent, text: str) -> None:
    update = getattr(event, "update", None)
    if update is None:
        return

    callback_query = getattr(update, "callback_query", None)
    if callback_query is not None:
        await callback_query.answer(text, show_alert=True)
        return

    message = getattr(update, "message", None)
    if message is not None:
        await message.answer(text)


def _extract_user_id(update: types.Update | None) -> int | None:
    if update is None:
        return None

    payload_attributes: Iterable[str] = (
        "message",
        "edited_message",
        "callback_query",
    )
    for attr in payload_attributes:
        payload = getattr(update, attr, None)
        if payload is None:
            continue
        user = getattr(payload, "from_user", None)
        if user and getattr(user, "id", None):
            return user.id
    return None


@router.error(ExceptionTypeFilter(*_EXPECTED_ERRORS))
async def handle_program_error(event: types.ErrorEvent) -> None:
    """Explain rejected requests to the user without alerting."""

    logger.warning(
        "request_rejected: %s: %s",
        type(event.exception).__name__,
        event.exception,
        extra={"user_id": _extract_user_id(getattr(event, "update", None))},
    )
    await _reply_to_user(event, resolve_error_message(event.exception))


@router.error(ExceptionTypeFilter(Exception), -F.exception(TelegramAPIError))
async def handle_any_exception(event: types.ErrorEvent) -> None:
    """Log and report unexpected failures."""

    logger.error(
        "unhandled_error: %s: %s",
        type(event.exception).__name__,
        event.exception,
        exc_info=event.exception,
    )
    sentry_capture_exception(event.exception, op="telegram_update")
    await _reply_to_user(event, resolve_error_message(event.exception))


@router.error(ExceptionTypeFilter(TelegramAPIError))
async def handle_telegram_api_error(event: types.ErrorEvent) -> None:
    logger.error("telegram_api_error: %s", event.exception)
    await _reply_to_user(event, INTERNAL_ERROR_TEXT)
