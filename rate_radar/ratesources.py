"""Multi-source rate lookup with ordered fallback.

Each upstream API family is one ``RateSource`` subclass that knows its URL
layout, symbol casing and response shape. Sources are grouped into ordered
chains per asset kind; ``fallback_fetch`` walks a chain until one answers.
"""

from __future__ import annotations

import asyncio
import logging
import math
from abc import ABC, abstractmethod

import httpx

from .assets import AssetKind
from .errors import (
    AllSourcesExhausted,
    SourceError,
    SourceHttpError,
    SourceParseMiss,
    SourceTimeout,
)
from .runtime import USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 5.0

_HEADERS = {"Accept": "application/json", "User-Agent": USER_AGENT}


def _as_rate(source: str, value: object, base: str, quote: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SourceParseMiss(source, f"no numeric rate for {base}/{quote}")
    rate = float(value)
    if not math.isfinite(rate) or rate <= 0:
        raise SourceParseMiss(source, f"unusable rate {value!r} for {base}/{quote}")
    return rate


class RateSource(ABC):
    """Abstract base class for rate sources."""

    name: str = "Unknown"
    kind: AssetKind = AssetKind.FIAT
    enabled: bool = True
    base_url: str = ""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._client = client
        self.timeout = timeout

    @abstractmethod
    def _request(self, base: str, quote: str) -> tuple[str, dict[str, str]]:
        """Return (url, query params) for one lookup."""

    @abstractmethod
    def _extract(self, data: object, base: str, quote: str) -> object:
        """Pull the raw rate out of a decoded response body."""

    async def fetch_rate(self, base: str, quote: str) -> float:
        """Fetch one rate, failing with a ``SourceError`` subclass.

        The whole call, connect through body decode, is bounded by
        ``self.timeout``.
        """
        try:
            return await asyncio.wait_for(self._fetch(base, quote), self.timeout)
        except asyncio.TimeoutError as exc:
            raise SourceTimeout(
                self.name, f"no answer within {self.timeout:.1f}s"
            ) from exc

    async def _get(self, url: str, params: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(
                url, params=params, headers=_HEADERS, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=params, headers=_HEADERS)

    async def _fetch(self, base: str, quote: str) -> float:
        url, params = self._request(base, quote)
        try:
            resp = await self._get(url, params)
        except httpx.TimeoutException as exc:
            raise SourceTimeout(self.name, f"timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise SourceHttpError(self.name, f"request failed: {exc}") from exc

        if not resp.is_success:
            raise SourceHttpError(
                self.name, f"HTTP {resp.status_code}", status=resp.status_code
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise SourceParseMiss(self.name, "response is not JSON") from exc

        try:
            value = self._extract(data, base, quote)
        except (KeyError, TypeError, AttributeError):
            value = None
        return _as_rate(self.name, value, base, quote)


class ExchangeRateApiSource(RateSource):
    """exchangerate-api.com v4: ``{"rates": {"EUR": 0.9}}`` keyed by upper case codes."""

    name = "exchangerate-api"
    kind = AssetKind.FIAT
    base_url = "https://api.exchangerate-api.com/v4/latest"

    def _request(self, base: str, quote: str) -> tuple[str, dict[str, str]]:
        return f"{self.base_url}/{base.upper()}", {}

    def _extract(self, data: object, base: str, quote: str) -> object:
        return data["rates"][quote.upper()]


class _CurrencyApiSource(RateSource):
    """fawazahmed0 currency-api mirrors: ``{"usd": {"eur": 0.9}}``, lower case."""

    kind = AssetKind.FIAT

    def _request(self, base: str, quote: str) -> tuple[str, dict[str, str]]:
        return f"{self.base_url}/{base.lower()}.json", {}

    def _extract(self, data: object, base: str, quote: str) -> object:
        return data[base.lower()][quote.lower()]


class JsDelivrCurrencySource(_CurrencyApiSource):
    name = "currency-api (jsdelivr)"
    base_url = "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1/currencies"


class PagesDevCurrencySource(_CurrencyApiSource):
    name = "currency-api (pages.dev)"
    base_url = "https://latest.currency-api.pages.dev/v1/currencies"


class CoinGeckoSource(RateSource):
    """CoinGecko simple price: ``{"bitcoin": {"usd": 60000}}``.

    ``base`` is a CoinGecko asset id, ``quote`` a fiat code.
    """

    name = "coingecko"
    kind = AssetKind.CRYPTO
    base_url = "https://api.coingecko.com/api/v3/simple/price"

    def _request(self, base: str, quote: str) -> tuple[str, dict[str, str]]:
        return self.base_url, {"ids": base.lower(), "vs_currencies": quote.lower()}

    def _extract(self, data: object, base: str, quote: str) -> object:
        return data[base.lower()][quote.lower()]


# Priority order per asset kind
FIAT_SOURCE_TYPES: tuple[type[RateSource], ...] = (
    ExchangeRateApiSource,
    JsDelivrCurrencySource,
    PagesDevCurrencySource,
)
CRYPTO_SOURCE_TYPES: tuple[type[RateSource], ...] = (CoinGeckoSource,)


def build_sources(
    kind: AssetKind,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> list[RateSource]:
    types = FIAT_SOURCE_TYPES if kind is AssetKind.FIAT else CRYPTO_SOURCE_TYPES
    return [source_type(client=client, timeout=timeout) for source_type in types]


async def fallback_fetch(sources: list[RateSource], base: str, quote: str) -> float:
    """Try ``sources`` in order and return the first rate obtained.

    Raises:
        AllSourcesExhausted: every enabled source failed.
    """
    errors: list[SourceError] = []
    for source in sources:
        if not source.enabled:
            continue
        try:
            rate = await source.fetch_rate(base, quote)
        except SourceError as exc:
            logger.debug("rate source %s failed for %s/%s: %s", source.name, base, quote, exc)
            errors.append(exc)
            continue
        if errors:
            logger.info(
                "%s/%s served by %s after %d failed source(s)",
                base,
                quote,
                source.name,
                len(errors),
            )
        return rate

    logger.warning("All rate sources failed for %s/%s", base, quote)
    raise AllSourcesExhausted(base, quote, errors)


class SourceFallbackFetcher:
    """Ordered source chains keyed by asset kind."""

    def __init__(self, chains: dict[AssetKind, list[RateSource]]) -> None:
        self.chains = chains

    @classmethod
    def default(
        cls,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> "SourceFallbackFetcher":
        return cls(
            {kind: build_sources(kind, client, timeout) for kind in AssetKind}
        )

    def sources_for(self, kind: AssetKind) -> list[RateSource]:
        return [s for s in self.chains.get(kind, []) if s.enabled]

    async def fetch(self, kind: AssetKind, base: str, quote: str) -> float:
        return await fallback_fetch(self.chains.get(kind, []), base, quote)
