"""sentitrade.producers.prices

Price feed.

One source per symbol, one explicit fallback strategy per symbol. A refresh
fetches every symbol concurrently, each under its own timeout; a failing source
degrades to its fallback and never delays or fails its neighbours. No retries:
the next cycle is the retry.

Fallback is a synthetic quote anchored on the last real quote (or the asset's
configured fallback price when no real quote ever arrived):

    anchor + amplitude * sin(t / period) + uniform(-noise, +noise)

Bounded around the anchor by construction, so it cannot drift.

Easter egg:
- There is no "real-time", only smaller intervals.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

import httpx

from sentitrade.core.assets import Asset, AssetRegistry
from sentitrade.core.client import DataClient
from sentitrade.core.config import PricesConfig
from sentitrade.core.exceptions import ProviderError
from sentitrade.core.metrics import MetricsRegistry
from sentitrade.core.types import Symbol

logger = logging.getLogger(__name__)


def _positive_price(value: Any, *, source: str) -> float:
    try:
        px = float(value)
    except (TypeError, ValueError):
        raise ProviderError(f"{source}: non-numeric price {value!r}") from None
    if not math.isfinite(px) or px <= 0:
        raise ProviderError(f"{source}: invalid price {px}")
    return px


@runtime_checkable
class PriceSource(Protocol):
    name: str

    async def quote(self, symbol: Symbol) -> float: ...


class BinanceTickerSource:
    """Public spot ticker. USD pairs are quoted against USDT."""

    name = "binance"
    PAIRS: dict[Symbol, str] = {Symbol.BTCUSD: "BTCUSDT", Symbol.ETHUSD: "ETHUSDT"}

    def __init__(self, client: DataClient, *, url: str) -> None:
        self.client = client
        self.url = url

    async def quote(self, symbol: Symbol) -> float:
        pair = self.PAIRS.get(symbol)
        if pair is None:
            raise ProviderError(f"binance: no pair for {symbol}")
        try:
            data = await self.client.request_json("GET", self.url, params={"symbol": pair}, expected=dict)
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"binance: {type(e).__name__}: {e}") from e
        return _positive_price(data.get("price"), source=self.name)


class GoldPriceSource:
    """goldprice.org spot rates: ``{"items": [{"xauPrice": ...}]}``."""

    name = "goldprice"

    def __init__(self, client: DataClient, *, url: str) -> None:
        self.client = client
        self.url = url

    async def quote(self, symbol: Symbol) -> float:
        if symbol is not Symbol.XAUUSD:
            raise ProviderError(f"goldprice: unsupported symbol {symbol}")
        try:
            data = await self.client.request_json("GET", self.url, expected=dict)
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"goldprice: {type(e).__name__}: {e}") from e
        items = data.get("items")
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            raise ProviderError("goldprice: empty items")
        return _positive_price(items[0].get("xauPrice"), source=self.name)


class SyntheticFallback:
    """Degraded-mode quote generator for one asset."""

    def __init__(
        self,
        asset: Asset,
        *,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self.asset = asset
        self.clock = clock
        self.rng = rng or random.Random()

    @property
    def max_deviation(self) -> float:
        return self.asset.wave_amplitude + self.asset.noise

    def price(self, anchor: float | None = None) -> float:
        base = float(anchor) if anchor is not None else self.asset.fallback_price
        wave = self.asset.wave_amplitude * math.sin(self.clock() / self.asset.wave_period_s)
        noise = self.rng.uniform(-self.asset.noise, self.asset.noise) if self.asset.noise > 0 else 0.0
        px = base + wave + noise
        # Never publish a non-positive price, even for absurd configs.
        return px if px > 0 else base


class PriceFeed:
    def __init__(
        self,
        registry: AssetRegistry,
        sources: Mapping[Symbol, PriceSource] | None = None,
        *,
        timeout_s: float = 5.0,
        fallbacks: Mapping[Symbol, SyntheticFallback] | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        self.registry = registry
        self.sources: dict[Symbol, PriceSource] = dict(sources or {})
        self.timeout_s = float(timeout_s)
        self.metrics = metrics or MetricsRegistry()
        self.fallbacks: dict[Symbol, SyntheticFallback] = {a.symbol: SyntheticFallback(a) for a in registry}
        self.fallbacks.update(fallbacks or {})
        self._last_real: dict[Symbol, float] = {}
        # Replaced wholesale on publish; readers never see a half-updated map.
        self._prices: dict[Symbol, float] = {a.symbol: a.initial_price for a in registry}

    def current_price(self, symbol: Symbol) -> float:
        return self._prices[symbol]

    def prices(self) -> dict[Symbol, float]:
        return dict(self._prices)

    async def refresh(self) -> dict[Symbol, float]:
        """Fetch every symbol concurrently and publish once all have settled."""

        symbols = self.registry.symbols
        results = await asyncio.gather(*(self._fetch(sym) for sym in symbols))
        fresh = dict(zip(symbols, results, strict=True))
        self._prices = {**self._prices, **fresh}
        return fresh

    async def _fetch(self, symbol: Symbol) -> float:
        source = self.sources.get(symbol)
        if source is None:
            return self._fallback(symbol, reason="no_source")

        try:
            px = await asyncio.wait_for(source.quote(symbol), timeout=self.timeout_s)
        except TimeoutError:
            return self._fallback(symbol, reason="timeout")
        except ProviderError as e:
            return self._fallback(symbol, reason=str(e))
        except Exception as e:  # noqa: BLE001 - per-symbol isolation boundary
            logger.exception("price_source_crashed", extra={"symbol": symbol.value, "source": source.name})
            return self._fallback(symbol, reason=f"{type(e).__name__}: {e}")

        self._last_real[symbol] = px
        self.metrics.counter(f"prices.{symbol.value}.live").inc()
        return px

    def _fallback(self, symbol: Symbol, *, reason: str) -> float:
        self.metrics.counter(f"prices.{symbol.value}.fallback").inc()
        if symbol in self.sources:
            logger.warning("price_fallback", extra={"symbol": symbol.value, "reason": reason})
        return self.fallbacks[symbol].price(self._last_real.get(symbol))


def build_price_feed(
    config: PricesConfig,
    registry: AssetRegistry,
    client: DataClient,
    *,
    metrics: MetricsRegistry | None = None,
) -> PriceFeed:
    """Wire the default public sources for the configured universe."""

    sources: dict[Symbol, PriceSource] = {}
    if config.live:
        binance = BinanceTickerSource(client, url=config.binance_url)
        gold = GoldPriceSource(client, url=config.gold_url)
        for sym in registry.symbols:
            if sym in BinanceTickerSource.PAIRS:
                sources[sym] = binance
            elif sym is Symbol.XAUUSD:
                sources[sym] = gold
    return PriceFeed(registry, sources, timeout_s=config.timeout_s, metrics=metrics)
