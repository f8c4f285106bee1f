"""Configuration dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Set


@dataclass
class Settings:
    """Configuration settings for rate_radar."""

    BOT_TOKEN: str | None
    ALLOWED_CHAT_IDS: Set[int]
    RATE_LIMIT_S: float
    CHECK_INTERVAL_MINUTES: float
    MIN_RECHECK_S: float
    CACHE_TTL_S: float
    PER_SOURCE_TIMEOUT_MS: int
    MAX_NOTIFICATIONS_PER_ALERT: int
    STATE_FILE: str
