"""Shared handler helpers: chat allow-list and command throttling."""

from __future__ import annotations

import functools
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable

from .. import config

if TYPE_CHECKING:
    from telegram import Update
    from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[None]]

NOT_AUTHORIZED = "⛔ This chat is not allowed to use RateRadar."

# chat id -> monotonic time of the last accepted command
_last_command_at: dict[int, float] = {}


def _chat_id(update: "Update") -> int | None:
    chat = getattr(update, "effective_chat", None) if update else None
    return chat.id if chat else None


def allowed(update: "Update") -> bool:
    """True when the update comes from a chat in ALLOWED_CHAT_IDS.

    An empty allow-list locks the bot for everyone.
    """
    chat_id = _chat_id(update)
    return chat_id is not None and chat_id in config.ALLOWED


async def guard(update: "Update", context: "ContextTypes.DEFAULT_TYPE") -> bool:
    if allowed(update):
        return True
    chat_id = _chat_id(update)
    if chat_id is not None:
        logger.info("Rejected command from chat_id=%s", chat_id)
        await update.effective_chat.send_message(NOT_AUTHORIZED)
    return False


def _throttle_wait(chat_id: int | None, now: float) -> float:
    """Seconds ``chat_id`` still has to wait, or 0 when it may run a command."""
    last = _last_command_at.get(chat_id if chat_id is not None else 0)
    if last is None:
        return 0.0
    return max(0.0, config.RATE_LIMIT_S - (now - last))


def rate_limit(func: Handler, name: str | None = None) -> Handler:
    """Wrap a command handler so each chat runs at most one command per RATE_LIMIT_S.

    Throttled calls get a short wait notice and never reach ``func``.
    """
    command = name or func.__name__.removeprefix("cmd_")

    @functools.wraps(func)
    async def throttled(update: "Update", context: "ContextTypes.DEFAULT_TYPE", *args, **kwargs):
        chat_id = _chat_id(update)
        now = time.monotonic()
        wait = _throttle_wait(chat_id, now)
        if wait > 0:
            logger.debug("/%s throttled for chat_id=%s (%.1fs left)", command, chat_id, wait)
            message = getattr(update, "effective_message", None)
            if message is not None:
                try:
                    await message.reply_text(f"⏱ Slow down: try again in {wait:.1f}s")
                except Exception as e:
                    logger.debug("throttle notice not delivered: %s", e)
            return None

        _last_command_at[chat_id if chat_id is not None else 0] = now
        return await func(update, context, *args, **kwargs)

    return throttled
