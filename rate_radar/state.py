"""Runtime state: alert store, rate cache, source chains and background tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from . import config
from .alerting import AlertEvaluator
from .notify import LogNotificationSink, NotificationSink, TelegramNotificationSink
from .ratecache import RateCache
from .ratesources import SourceFallbackFetcher
from .resolver import RateResolver
from .store import AlertStore, JsonAlertStore

logger = logging.getLogger(__name__)

BOT_STATE_KEY = "state"


def _default_store() -> AlertStore:
    store = JsonAlertStore(
        config.STATE_FILE,
        default_max_notifications=config.MAX_NOTIFICATIONS_PER_ALERT,
    )
    store.load()
    return store


@dataclass
class RadarState:
    """Everything one running bot shares between commands and the alert loop."""

    check_interval_s: float = field(default_factory=lambda: config.CHECK_INTERVAL_S)
    min_recheck_s: float = field(default_factory=lambda: config.MIN_RECHECK_S)
    cache_ttl_s: float = field(default_factory=lambda: config.CACHE_TTL_S)
    source_timeout_s: float = field(default_factory=lambda: config.SOURCE_TIMEOUT_S)

    store: AlertStore = field(default_factory=lambda: _default_store())
    fetcher: SourceFallbackFetcher | None = None
    sink: NotificationSink = field(default_factory=LogNotificationSink)
    tasks: dict[str, object] = field(default_factory=dict)

    http: httpx.AsyncClient | None = field(default=None, init=False, repr=False)
    cache: RateCache = field(init=False, repr=False)
    resolver: RateResolver = field(init=False, repr=False)
    evaluator: AlertEvaluator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.fetcher is None:
            self.http = httpx.AsyncClient(
                timeout=self.source_timeout_s, follow_redirects=True
            )
            self.fetcher = SourceFallbackFetcher.default(
                client=self.http, timeout=self.source_timeout_s
            )
        self.cache = RateCache(ttl_s=self.cache_ttl_s)
        self.resolver = RateResolver(self.fetcher, self.cache)
        self.evaluator = AlertEvaluator(
            self.store,
            self.resolver,
            self.sink,
            min_recheck_s=self.min_recheck_s,
        )

    def attach_bot(self, bot) -> None:
        """Route notifications to Telegram once the bot is available."""
        self.sink = TelegramNotificationSink(bot, config.ALLOWED)
        self.evaluator.sink = self.sink

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()
            self.http = None


def get_state(app) -> RadarState:
    """Return the ``RadarState`` kept in ``app.bot_data``, building it on first use."""
    state = app.bot_data.get(BOT_STATE_KEY)
    if state is None:
        state = RadarState()
        app.bot_data[BOT_STATE_KEY] = state
    return state
