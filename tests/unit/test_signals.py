from __future__ import annotations

import json

import httpx
import pytest
from pydantic import ValidationError

from sentitrade.core.client import DataClient
from sentitrade.core.config import PricesConfig
from sentitrade.core.exceptions import ProviderError
from sentitrade.core.types import Decision, SentimentCategory, Symbol
from sentitrade.producers.prices import build_price_feed
from sentitrade.producers.signals import AnalysisPayload, HttpSignalProvider
from tests.unit._fakes import registry

ENDPOINT = "https://signals.test/analyze"


def test_payload_normalizes_case_and_derives_category() -> None:
    p = AnalysisPayload.model_validate({"decision": "buy", "sentiment_score": 0.7, "reasoning": "ETF inflows"})
    a = p.to_analysis(Symbol.BTCUSD)

    assert a.decision is Decision.BUY
    assert a.sentiment_category is SentimentCategory.POSITIVE
    assert a.symbol is Symbol.BTCUSD
    assert a.received_at.tzinfo is not None

    neg = AnalysisPayload.model_validate({"decision": "SELL", "sentiment_score": -0.2}).to_analysis(Symbol.XAUUSD)
    assert neg.sentiment_category is SentimentCategory.NEGATIVE
    flat = AnalysisPayload.model_validate({"decision": "HOLD", "sentiment_score": 0}).to_analysis(Symbol.XAUUSD)
    assert flat.sentiment_category is SentimentCategory.NEUTRAL


def test_payload_keeps_explicit_category_and_sources() -> None:
    p = AnalysisPayload.model_validate(
        {
            "decision": "HOLD",
            "sentiment_score": 0.1,
            "sentiment_category": "neutral",
            "sources": [{"title": "Fed minutes", "url": "https://news.test/fed"}, {}],
        }
    )
    a = p.to_analysis(Symbol.XAUUSD)
    assert a.sentiment_category is SentimentCategory.NEUTRAL
    assert [s.title for s in a.sources] == ["Fed minutes"]


@pytest.mark.parametrize(
    "raw",
    [
        {"decision": "STRONG_BUY", "sentiment_score": 0.5},
        {"decision": "BUY", "sentiment_score": 1.5},
        {"decision": "BUY"},
    ],
)
def test_payload_rejects_invalid(raw) -> None:
    with pytest.raises(ValidationError):
        AnalysisPayload.model_validate(raw)


@pytest.mark.anyio
async def test_http_provider_posts_symbol_and_parses() -> None:
    seen: list[dict] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append({"body": json.loads(request.content), "auth": request.headers.get("Authorization")})
        return httpx.Response(200, json={"data": {"decision": "SELL", "sentiment_score": -0.8, "reasoning": "risk-off"}})

    client = DataClient(transport=httpx.MockTransport(_handler))
    provider = HttpSignalProvider(client, endpoint_url=ENDPOINT, api_key="k")

    a = await provider.analyze(Symbol.ETHUSD)
    assert a.decision is Decision.SELL
    assert a.sentiment_score == -0.8
    assert a.reasoning == "risk-off"
    assert seen == [{"body": {"symbol": "ETHUSD"}, "auth": "Bearer k"}]
    await client.aclose()


@pytest.mark.anyio
async def test_http_provider_failures_are_provider_errors() -> None:
    bad_status = DataClient(transport=httpx.MockTransport(lambda request: httpx.Response(502)))
    with pytest.raises(ProviderError):
        await HttpSignalProvider(bad_status, endpoint_url=ENDPOINT).analyze(Symbol.XAUUSD)
    await bad_status.aclose()

    malformed = DataClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"decision": "MAYBE"}))
    )
    with pytest.raises(ProviderError):
        await HttpSignalProvider(malformed, endpoint_url=ENDPOINT).analyze(Symbol.XAUUSD)
    await malformed.aclose()


@pytest.mark.anyio
async def test_http_provider_requires_endpoint() -> None:
    client = DataClient()
    with pytest.raises(ProviderError, match="not configured"):
        await HttpSignalProvider(client, endpoint_url="").analyze(Symbol.XAUUSD)
    await client.aclose()


@pytest.mark.anyio
async def test_price_outage_does_not_block_signals_on_shared_client() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "signals.test":
            return httpx.Response(200, json={"decision": "BUY", "sentiment_score": 0.9})
        return httpx.Response(503)

    client = DataClient(transport=httpx.MockTransport(_handler))
    feed = build_price_feed(
        PricesConfig(binance_url="https://binance.test/api/v3/ticker/price", gold_url="https://gold.test/dbXRates/USD"),
        registry(),
        client,
    )
    for _ in range(6):
        await feed.refresh()
    assert client.open_hosts() == ["binance.test", "gold.test"]

    a = await HttpSignalProvider(client, endpoint_url=ENDPOINT).analyze(Symbol.BTCUSD)
    assert a.decision is Decision.BUY
    assert client.open_hosts() == ["binance.test", "gold.test"]
    await client.aclose()
