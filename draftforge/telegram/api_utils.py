"""Shared helpers to interact with the Telegram Bot API safely."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from aiogram import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramRetryAfter,
)

P = ParamSpec("P")
T = TypeVar("T")

logger = logging.getLogger(__name__)


async def safe_api_call(
    label: str,
    func: Callable[P, Awaitable[T]],
    *args: P.args,
    retries: int = 3,
    **kwargs: P.kwargs,
) -> T | None:
    """Execute a Telegram API call, handling rate limits and rejected requests.

    Announcements are best effort: every failure is logged and ``None`` is
    returned so a broken chat never affects a committed pick.
    """
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)
        except TelegramRetryAfter as exc:
            attempt += 1
            if attempt >= retries:
                logger.warning(
                    "Telegram call '%s' exceeded retry limit (%s attempts, retry_after=%s).",
                    label,
                    attempt,
                    getattr(exc, "retry_after", None),
                )
                return None
            delay = float(getattr(exc, "retry_after", 0) or 1.0)
            logger.info(
                "Telegram call '%s' hit rate limit; sleeping for %.1f s (attempt %s/%s).",
                label,
                delay,
                attempt,
                retries,
            )
            await asyncio.sleep(delay)
        except TelegramForbiddenError:
            logger.info("Telegram call '%s' forbidden (bot removed from the draft chat?).", label)
            return None
        except TelegramBadRequest as exc:
            logger.warning("Telegram call '%s' bad request: %s", label, exc)
            return None
        except TelegramAPIError as exc:
            logger.error("Telegram call '%s' failed: %s", label, exc, exc_info=True)
            return None


async def safe_send_message(bot: Bot | None, chat_id: int | None, text: str, **kwargs) -> bool:
    """Send a chat message while handling expected Telegram errors."""
    if bot is None or chat_id is None:
        return False
    return (await safe_api_call("bot.send_message", bot.send_message, chat_id, text, **kwargs)) is not None
