"""Notification sinks for fired alerts."""

from __future__ import annotations

import html
import logging
from abc import ABC, abstractmethod
from typing import Iterable

from telegram.constants import ParseMode

from .models.alerts import Alert

logger = logging.getLogger(__name__)

_TITLE = "RateRadar Alert"


class NotificationSink(ABC):
    """Where fired alerts are delivered."""

    @abstractmethod
    async def emit(self, alert: Alert, message: str, current_rate: float) -> None:
        """Deliver one notification."""


class LogNotificationSink(NotificationSink):
    async def emit(self, alert: Alert, message: str, current_rate: float) -> None:
        logger.info("%s [%s]: %s", _TITLE, alert.id, message)


class TelegramNotificationSink(NotificationSink):
    """Send alerts as HTML messages through a python-telegram-bot ``Bot``.

    Alerts owned by a chat go to that chat only; unowned alerts go to every
    allowed chat. A failed send to one chat does not stop the others.
    """

    def __init__(self, bot, chat_ids: Iterable[int]) -> None:
        self.bot = bot
        self.chat_ids = set(chat_ids)

    def _targets(self, alert: Alert) -> list[int]:
        if alert.chat_id is not None:
            return [alert.chat_id]
        return sorted(self.chat_ids)

    async def emit(self, alert: Alert, message: str, current_rate: float) -> None:
        text = f"🔔 <b>{_TITLE}</b>\n{html.escape(message)}"
        if alert.description:
            text += f"\n<i>{html.escape(alert.description)}</i>"
        targets = self._targets(alert)
        if not targets:
            logger.warning("No chat to notify for alert %s", alert.id)
            return
        for chat_id in targets:
            try:
                await self.bot.send_message(
                    chat_id=chat_id, text=text, parse_mode=ParseMode.HTML
                )
            except Exception:
                logger.exception("Failed sending alert %s to chat_id=%s", alert.id, chat_id)
