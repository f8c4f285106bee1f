"""Shared test fixtures and dummy classes."""

from __future__ import annotations

from typing import Any

import pytest

from rate_radar.assets import AssetKind
from rate_radar.errors import SourceParseMiss
from rate_radar.models.alerts import Alert
from rate_radar.notify import NotificationSink
from rate_radar.ratecache import RateCache
from rate_radar.ratesources import RateSource, SourceFallbackFetcher
from rate_radar.resolver import RateResolver
from rate_radar.state import RadarState
from rate_radar.store import AlertStore


class FakeClock:
    """Manually advanced clock shared by cache, store and evaluator."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource(RateSource):
    """Rate source answering from a dict, or raising ``error``."""

    def __init__(
        self,
        name: str,
        rates: dict[tuple[str, str], float] | None = None,
        error: Exception | None = None,
        kind: AssetKind = AssetKind.FIAT,
    ) -> None:
        super().__init__()
        self.name = name
        self.kind = kind
        self.rates = dict(rates or {})
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def _request(self, base: str, quote: str) -> tuple[str, dict[str, str]]:
        return "", {}

    def _extract(self, data: object, base: str, quote: str) -> object:
        return None

    async def fetch_rate(self, base: str, quote: str) -> float:
        self.calls.append((base, quote))
        if self.error is not None:
            raise self.error
        if (base, quote) not in self.rates:
            raise SourceParseMiss(self.name, f"no {base}/{quote}")
        return self.rates[(base, quote)]


class RecordingSink(NotificationSink):
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, float]] = []

    async def emit(self, alert: Alert, message: str, current_rate: float) -> None:
        self.sent.append((alert.id, message, current_rate))


class DummyChat:
    """Dummy Telegram chat for testing."""

    def __init__(self, chat_id: int) -> None:
        self.id = chat_id
        self.sent: list[str] = []

    async def send_message(self, text: str) -> None:
        self.sent.append(text)


class DummyMessage:
    """Dummy Telegram message for testing."""

    def __init__(self) -> None:
        self.replies: list[str] = []

    async def reply_text(self, text: str, **_: Any) -> None:
        self.replies.append(text)


class DummyUpdate:
    """Dummy Telegram update for testing."""

    def __init__(self, chat_id: int) -> None:
        self.effective_chat = DummyChat(chat_id)
        self.message = DummyMessage()
        self.effective_message = self.message


class DummyBot:
    def __init__(self, fail_for: set[int] | None = None) -> None:
        self.sent: list[tuple[int, str]] = []
        self.fail_for = fail_for or set()

    async def send_message(self, chat_id: int, text: str, **_: Any) -> None:
        if chat_id in self.fail_for:
            raise RuntimeError("chat unreachable")
        self.sent.append((chat_id, text))


class DummyApplication:
    """Dummy Telegram application for testing."""

    def __init__(self) -> None:
        self.bot_data: dict[str, object] = {}
        self.bot = DummyBot()


class DummyContext:
    """Dummy Telegram context for testing."""

    def __init__(self, args: list[str] | None = None) -> None:
        self.args = args or []
        self.application = DummyApplication()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fiat_source() -> FakeSource:
    return FakeSource(
        "fiat",
        {("USD", "EUR"): 0.9, ("EUR", "USD"): 1.1, ("GBP", "JPY"): 190.0},
    )


@pytest.fixture
def crypto_source() -> FakeSource:
    return FakeSource(
        "crypto",
        {
            ("bitcoin", "USD"): 60000.0,
            ("ethereum", "USD"): 3000.0,
            ("bitcoin", "EUR"): 55000.0,
        },
        kind=AssetKind.CRYPTO,
    )


@pytest.fixture
def fetcher(fiat_source, crypto_source) -> SourceFallbackFetcher:
    return SourceFallbackFetcher(
        {AssetKind.FIAT: [fiat_source], AssetKind.CRYPTO: [crypto_source]}
    )


@pytest.fixture
def resolver(fetcher, clock) -> RateResolver:
    return RateResolver(fetcher, RateCache(ttl_s=300, clock=clock))


@pytest.fixture
def store(clock) -> AlertStore:
    return AlertStore(clock=clock)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def radar_state(store, fetcher, sink) -> RadarState:
    return RadarState(store=store, fetcher=fetcher, sink=sink)
