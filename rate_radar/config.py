"""Central configuration for rate_radar."""

from __future__ import annotations

import logging
import os
from typing import Set

from .models.settings import Settings

logger = logging.getLogger(__name__)


def _chat_ids(raw: str) -> Set[int]:
    """Parse ``"123, -456"`` into chat ids; entries that are not integers are dropped."""
    ids = set()
    for token in (raw or "").replace(" ", "").split(","):
        if token.lstrip("-").isdigit():
            ids.add(int(token))
    return ids


def _positive_float(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive; using %s", name, default)
        return default
    return value


def _positive_int(name: str, default: int) -> int:
    value = _positive_float(name, float(default))
    if value != int(value) or int(value) < 1:
        logger.warning("%s must be a whole number of at least 1; using %s", name, default)
        return default
    return int(value)


def _read_settings() -> Settings:
    """Snapshot the environment into a ``Settings``.

    Invalid or non-positive numbers fall back to their defaults with a warning.
    """
    token = os.environ.get("BOT_TOKEN") or None
    allowed = _chat_ids(os.environ.get("ALLOWED_CHAT_IDS", ""))
    rate_limit = _positive_float("RATE_LIMIT_S", 1.0)

    # Alert engine
    check_interval = _positive_float("CHECK_INTERVAL_MINUTES", 5.0)
    min_recheck = _positive_float("MIN_RECHECK_SECONDS", 60.0)
    cache_ttl = _positive_float("CACHE_TTL_SECONDS", 300.0)
    source_timeout = _positive_int("PER_SOURCE_TIMEOUT_MS", 5000)
    max_notifications = _positive_int("MAX_NOTIFICATIONS_PER_ALERT", 1)
    state_file = os.environ.get("STATE_FILE") or "/app/data/alerts.json"

    return Settings(
        BOT_TOKEN=token,
        ALLOWED_CHAT_IDS=allowed,
        RATE_LIMIT_S=rate_limit,
        CHECK_INTERVAL_MINUTES=check_interval,
        MIN_RECHECK_S=min_recheck,
        CACHE_TTL_S=cache_ttl,
        PER_SOURCE_TIMEOUT_MS=source_timeout,
        MAX_NOTIFICATIONS_PER_ALERT=max_notifications,
        STATE_FILE=state_file,
    )


settings = _read_settings()


def validate_settings() -> None:
    """Validate critical configuration and log warnings for issues."""
    if settings.BOT_TOKEN is None:
        logger.error("BOT_TOKEN environment variable is not set")
    if not settings.ALLOWED_CHAT_IDS:
        logger.warning(
            "ALLOWED_CHAT_IDS is empty; commands will be unauthorized and "
            "alert notifications have nowhere to go."
        )


# Exported constants
TOKEN: str | None = settings.BOT_TOKEN
ALLOWED: set[int] = settings.ALLOWED_CHAT_IDS
RATE_LIMIT_S: float = settings.RATE_LIMIT_S
CHECK_INTERVAL_S: float = settings.CHECK_INTERVAL_MINUTES * 60
MIN_RECHECK_S: float = settings.MIN_RECHECK_S
CACHE_TTL_S: float = settings.CACHE_TTL_S
SOURCE_TIMEOUT_S: float = settings.PER_SOURCE_TIMEOUT_MS / 1000
MAX_NOTIFICATIONS_PER_ALERT: int = settings.MAX_NOTIFICATIONS_PER_ALERT
STATE_FILE: str = settings.STATE_FILE

validate_settings()
