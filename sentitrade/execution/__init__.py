"""sentitrade.execution

Paper execution: sizing, the position book, and P&L arithmetic.

There is no live mode. Every fill happens at the price handed in.
"""

from __future__ import annotations

from sentitrade.execution.book import PositionBook
from sentitrade.execution.pnl import PnLSnapshot, snapshot, stop_breached, trade_pnl
from sentitrade.execution.position_sizer import PositionSizer, SizeResult, round_lots
from sentitrade.execution.risk import RiskBook

__all__ = [
    "PositionBook",
    "PositionSizer",
    "RiskBook",
    "SizeResult",
    "PnLSnapshot",
    "round_lots",
    "snapshot",
    "stop_breached",
    "trade_pnl",
]
