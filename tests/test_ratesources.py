"""Tests for the upstream rate sources and the fallback chain."""

import asyncio

import httpx
import pytest

from rate_radar import ratesources
from rate_radar.assets import AssetKind
from rate_radar.errors import (
    AllSourcesExhausted,
    SourceHttpError,
    SourceParseMiss,
    SourceTimeout,
)
from rate_radar.ratesources import (
    CoinGeckoSource,
    ExchangeRateApiSource,
    JsDelivrCurrencySource,
    PagesDevCurrencySource,
    SourceFallbackFetcher,
    fallback_fetch,
)

from conftest import FakeSource


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_exchangerate_api_reads_upper_case_rates():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"base": "USD", "rates": {"EUR": 0.91}})

    async with _client(handler) as client:
        rate = await ExchangeRateApiSource(client=client).fetch_rate("usd", "eur")

    assert rate == 0.91
    assert seen[0].path.endswith("/latest/USD")


@pytest.mark.asyncio
@pytest.mark.parametrize("source_type", [JsDelivrCurrencySource, PagesDevCurrencySource])
async def test_currency_api_reads_lower_case_nesting(source_type):
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"date": "2024-01-01", "usd": {"eur": 0.92}})

    async with _client(handler) as client:
        rate = await source_type(client=client).fetch_rate("USD", "EUR")

    assert rate == 0.92
    assert seen[0].path.endswith("/currencies/usd.json")


@pytest.mark.asyncio
async def test_coingecko_sends_ids_and_vs_currency():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"bitcoin": {"usd": 60000}})

    async with _client(handler) as client:
        rate = await CoinGeckoSource(client=client).fetch_rate("bitcoin", "USD")

    assert rate == 60000.0
    assert seen[0].params["ids"] == "bitcoin"
    assert seen[0].params["vs_currencies"] == "usd"


@pytest.mark.asyncio
async def test_non_success_status_is_http_error():
    async with _client(lambda request: httpx.Response(503)) as client:
        with pytest.raises(SourceHttpError) as excinfo:
            await ExchangeRateApiSource(client=client).fetch_rate("USD", "EUR")
    assert excinfo.value.status == 503


@pytest.mark.asyncio
async def test_transport_error_is_http_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(SourceHttpError):
            await ExchangeRateApiSource(client=client).fetch_rate("USD", "EUR")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"rates": {"GBP": 0.8}},
        {"rates": {"EUR": "0.9"}},
        {"rates": {"EUR": 0}},
        {"rates": {"EUR": True}},
        {"result": "error"},
        [],
    ],
)
async def test_missing_or_unusable_rate_is_parse_miss(body):
    async with _client(lambda request: httpx.Response(200, json=body)) as client:
        with pytest.raises(SourceParseMiss):
            await ExchangeRateApiSource(client=client).fetch_rate("USD", "EUR")


@pytest.mark.asyncio
async def test_non_json_body_is_parse_miss():
    async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(SourceParseMiss):
            await ExchangeRateApiSource(client=client).fetch_rate("USD", "EUR")


@pytest.mark.asyncio
async def test_slow_source_times_out():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json={"rates": {"EUR": 0.9}})

    async with _client(handler) as client:
        source = ExchangeRateApiSource(client=client, timeout=0.05)
        with pytest.raises(SourceTimeout):
            await source.fetch_rate("USD", "EUR")


@pytest.mark.asyncio
async def test_fallback_stops_at_first_success():
    first = FakeSource("first", error=SourceHttpError("first", "HTTP 500", status=500))
    second = FakeSource("second", {("USD", "EUR"): 0.9})
    third = FakeSource("third", {("USD", "EUR"): 0.7})

    rate = await fallback_fetch([first, second, third], "USD", "EUR")

    assert rate == 0.9
    assert first.calls == [("USD", "EUR")]
    assert second.calls == [("USD", "EUR")]
    assert third.calls == []


@pytest.mark.asyncio
async def test_fallback_skips_disabled_sources():
    disabled = FakeSource("disabled", {("USD", "EUR"): 0.5})
    disabled.enabled = False
    active = FakeSource("active", {("USD", "EUR"): 0.9})

    assert await fallback_fetch([disabled, active], "USD", "EUR") == 0.9
    assert disabled.calls == []


@pytest.mark.asyncio
async def test_fallback_exhausted_collects_every_error():
    sources = [
        FakeSource("a", error=SourceTimeout("a", "slow")),
        FakeSource("b", error=SourceHttpError("b", "HTTP 429", status=429)),
        FakeSource("c"),
    ]

    with pytest.raises(AllSourcesExhausted) as excinfo:
        await fallback_fetch(sources, "USD", "EUR")

    assert [e.source for e in excinfo.value.errors] == ["a", "b", "c"]
    assert (excinfo.value.base, excinfo.value.quote) == ("USD", "EUR")


@pytest.mark.asyncio
async def test_empty_chain_is_exhausted():
    with pytest.raises(AllSourcesExhausted):
        await fallback_fetch([], "USD", "EUR")


def test_default_chains_are_ordered_by_priority():
    fetcher = SourceFallbackFetcher.default(timeout=2.0)

    fiat = fetcher.sources_for(AssetKind.FIAT)
    crypto = fetcher.sources_for(AssetKind.CRYPTO)

    assert [type(s) for s in fiat] == list(ratesources.FIAT_SOURCE_TYPES)
    assert [type(s) for s in crypto] == [CoinGeckoSource]
    assert all(s.timeout == 2.0 for s in fiat + crypto)


@pytest.mark.asyncio
async def test_fetcher_routes_by_kind(fiat_source, crypto_source, fetcher):
    assert await fetcher.fetch(AssetKind.CRYPTO, "bitcoin", "USD") == 60000.0
    assert fiat_source.calls == []
    assert crypto_source.calls == [("bitcoin", "USD")]
