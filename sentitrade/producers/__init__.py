"""sentitrade.producers

The engine's view of the outside world: prices and trading signals.

Both are fallible. Prices degrade to a synthetic quote; signals degrade to
"skip this symbol until next cycle".
"""

from __future__ import annotations

from sentitrade.producers.prices import (
    BinanceTickerSource,
    GoldPriceSource,
    PriceFeed,
    PriceSource,
    SyntheticFallback,
    build_price_feed,
)
from sentitrade.producers.signals import AnalysisPayload, HttpSignalProvider, SignalProvider

__all__ = [
    "AnalysisPayload",
    "BinanceTickerSource",
    "GoldPriceSource",
    "HttpSignalProvider",
    "PriceFeed",
    "PriceSource",
    "SignalProvider",
    "SyntheticFallback",
    "build_price_feed",
]
