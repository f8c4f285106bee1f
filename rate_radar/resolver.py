"""Asset-kind-aware rate composition on top of the cache and source chains."""

from __future__ import annotations

import asyncio
import logging

from .assets import PIVOT_CURRENCY, AssetKind, classify, normalize_symbol
from .errors import AllSourcesExhausted, RateResolutionFailed
from .models.cache import RateKey
from .ratecache import RateCache
from .ratesources import SourceFallbackFetcher

logger = logging.getLogger(__name__)


class RateResolver:
    """Resolve the current ``from -> to`` rate for any fiat/crypto combination.

    fiat->fiat and crypto->fiat are direct lookups, fiat->crypto inverts the
    crypto price, crypto->crypto divides two USD prices. A failed leg fails
    the whole pair; there is no second pivot.
    """

    def __init__(self, fetcher: SourceFallbackFetcher, cache: RateCache) -> None:
        self.fetcher = fetcher
        self.cache = cache

    async def _lookup(self, kind: AssetKind, base: str, quote: str) -> float:
        key = RateKey(base=base, quote=quote, kind=kind)
        return await self.cache.get_or_fetch(
            key, lambda: self.fetcher.fetch(kind, base, quote)
        )

    async def resolve(self, from_symbol: str, to_symbol: str) -> float:
        base = normalize_symbol(from_symbol)
        quote = normalize_symbol(to_symbol)
        if not base or not quote:
            raise RateResolutionFailed(f"empty symbol in {from_symbol!r}/{to_symbol!r}")
        if base == quote:
            return 1.0

        from_kind = classify(base)
        to_kind = classify(quote)
        try:
            if from_kind is AssetKind.FIAT and to_kind is AssetKind.FIAT:
                return await self._lookup(AssetKind.FIAT, base, quote)
            if from_kind is AssetKind.CRYPTO and to_kind is AssetKind.FIAT:
                return await self._lookup(AssetKind.CRYPTO, base, quote)
            if from_kind is AssetKind.FIAT and to_kind is AssetKind.CRYPTO:
                price = await self._lookup(AssetKind.CRYPTO, quote, base)
                return 1.0 / price
            return await self._cross_rate(base, quote)
        except AllSourcesExhausted as exc:
            raise RateResolutionFailed(f"no rate for {base}/{quote}: {exc}") from exc

    async def _cross_rate(self, base: str, quote: str) -> float:
        legs = await asyncio.gather(
            self._lookup(AssetKind.CRYPTO, base, PIVOT_CURRENCY),
            self._lookup(AssetKind.CRYPTO, quote, PIVOT_CURRENCY),
            return_exceptions=True,
        )
        for leg in legs:
            if isinstance(leg, AllSourcesExhausted):
                raise leg
            if isinstance(leg, BaseException):
                raise RateResolutionFailed(
                    f"{PIVOT_CURRENCY} pivot failed for {base}/{quote}: {leg}"
                ) from leg
        from_price, to_price = legs
        logger.debug(
            "cross rate %s/%s via %s: %s / %s", base, quote, PIVOT_CURRENCY, from_price, to_price
        )
        return from_price / to_price
