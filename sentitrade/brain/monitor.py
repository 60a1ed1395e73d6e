"""sentitrade.brain.monitor

Mark-to-market monitor: the fast loop.

Each cycle:
1) refresh every price (concurrent, per-symbol fallback)
2) close OPEN trades whose stop-loss is breached, at the fresh price
3) revalue the trades still open and derive equity

A stop-loss close that loses the race against a reversal close is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sentitrade.core.activity import ActivityLog
from sentitrade.core.exceptions import CloseRejectedError
from sentitrade.core.metrics import MetricsRegistry
from sentitrade.core.time import ensure_utc
from sentitrade.core.types import CloseReason, Severity, Symbol, Trade
from sentitrade.execution.book import PositionBook
from sentitrade.execution.pnl import stop_breached
from sentitrade.producers.prices import PriceFeed

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MonitorCycleResult:
    ts: datetime
    prices: dict[Symbol, float]
    floating_pnl: float
    equity: float
    stopped_out: list[Trade] = field(default_factory=list)


class MarkToMarketMonitor:
    def __init__(
        self,
        *,
        book: PositionBook,
        feed: PriceFeed,
        activity: ActivityLog,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self.book = book
        self.feed = feed
        self.activity = activity
        self.metrics = metrics or MetricsRegistry()

    async def run_cycle(self, *, now: datetime | None = None) -> MonitorCycleResult:
        await self.feed.refresh()
        ts = ensure_utc(now)
        prices = self.feed.prices()

        stopped: list[Trade] = []
        # Re-read open trades every tick; never act on a list captured earlier.
        for trade in self.book.open_trades():
            px = prices[trade.symbol]
            if not stop_breached(trade, px):
                continue
            try:
                pnl = self.book.close_trade(trade.id, close_price=px, now=ts, reason=CloseReason.STOP_LOSS)
            except CloseRejectedError:
                logger.debug("stop_loss_close_superseded", extra={"trade_id": trade.id})
                continue

            closed = self.book.get(trade.id)
            if closed is not None:
                stopped.append(closed)
            self.metrics.counter("monitor.stop_outs").inc()
            self.activity.append(
                f"[{trade.symbol}] Stop Loss Hit! Closed {trade.direction.side} @ {px:.2f}. PnL: ${pnl:.2f}",
                Severity.ERROR,
                ts=ts,
            )

        floating, equity = self.book.revalue(prices)
        self.metrics.counter("monitor.cycles").inc()
        self.metrics.gauge("account.equity").set(equity)
        if not stopped:
            logger.debug("equity_refreshed", extra={"equity": equity, "floating_pnl": floating})

        return MonitorCycleResult(ts=ts, prices=prices, floating_pnl=floating, equity=equity, stopped_out=stopped)
