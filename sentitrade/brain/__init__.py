"""sentitrade.brain

The two loops and the engine that conducts them.
"""

from __future__ import annotations

from sentitrade.brain.engine import TradingEngine
from sentitrade.brain.monitor import MarkToMarketMonitor, MonitorCycleResult
from sentitrade.brain.scheduler import SENTIMENT_THRESHOLD, DecisionCycleResult, DecisionScheduler

__all__ = [
    "DecisionCycleResult",
    "DecisionScheduler",
    "MarkToMarketMonitor",
    "MonitorCycleResult",
    "SENTIMENT_THRESHOLD",
    "TradingEngine",
]
