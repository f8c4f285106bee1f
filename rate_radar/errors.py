"""Exception hierarchy for rate acquisition and alert evaluation."""

from __future__ import annotations


class RateRadarError(Exception):
    """Base exception for rate_radar errors."""


class SourceError(RateRadarError):
    """A single rate source failed; the fallback chain moves on."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class SourceTimeout(SourceError):
    """Source did not answer inside its deadline."""


class SourceHttpError(SourceError):
    """Transport failure or non-2xx response."""

    def __init__(self, source: str, message: str, status: int | None = None) -> None:
        super().__init__(source, message)
        self.status = status


class SourceParseMiss(SourceError):
    """Response body lacked the requested pair."""


class AllSourcesExhausted(RateRadarError):
    """Every source in a chain failed for one pair."""

    def __init__(self, base: str, quote: str, errors: list[SourceError]) -> None:
        detail = "; ".join(str(e) for e in errors) or "no sources enabled"
        super().__init__(f"all sources failed for {base}/{quote}: {detail}")
        self.base = base
        self.quote = quote
        self.errors = errors


class RateResolutionFailed(RateRadarError):
    """A rate could not be composed for an alert's pair."""


class InvalidAlert(RateRadarError):
    """Alert definition failed validation."""


class AlertNotFound(RateRadarError):
    """No alert with the requested id."""


class AlertPersistFailed(RateRadarError):
    """Alert state could not be written to the store."""
