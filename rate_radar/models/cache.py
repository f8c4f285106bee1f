"""Rate cache dataclasses."""

from __future__ import annotations

from dataclasses import dataclass

from ..assets import AssetKind


@dataclass(frozen=True)
class RateKey:
    """Cache key; the kind keeps fiat and crypto pairs with equal text apart."""

    base: str
    quote: str
    kind: AssetKind

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.base}/{self.quote}"


@dataclass
class RateCacheEntry:
    key: RateKey
    rate: float
    fetched_at: float


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    failures: int = 0
