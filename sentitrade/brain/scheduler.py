"""sentitrade.brain.scheduler

Decision scheduler: the slow loop.

For every symbol, in registry order:
1) ask the signal provider (failure: skip the symbol this cycle)
2) held trade + opposite decision: close on reversal, nothing more this cycle
3) no held trade + BUY/SELL + |sentiment| above threshold: open a sized trade

The cycle stamps ``last_decision_run_at`` only when every symbol was visited.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sentitrade.core.activity import ActivityLog
from sentitrade.core.assets import AssetRegistry
from sentitrade.core.exceptions import (
    CloseRejectedError,
    InvariantViolationError,
    ProviderError,
    SizeTooSmallError,
)
from sentitrade.core.metrics import MetricsRegistry
from sentitrade.core.time import utc_now
from sentitrade.core.types import Analysis, CloseReason, Severity, Symbol, Trade
from sentitrade.execution.book import PositionBook
from sentitrade.execution.risk import RiskBook
from sentitrade.producers.prices import PriceFeed
from sentitrade.producers.signals import SignalProvider

logger = logging.getLogger(__name__)

SENTIMENT_THRESHOLD = 0.4


@dataclass(slots=True)
class DecisionCycleResult:
    started_at: datetime
    opened: list[Trade] = field(default_factory=list)
    closed: list[Trade] = field(default_factory=list)
    skipped: list[Symbol] = field(default_factory=list)
    completed: bool = False


class DecisionScheduler:
    def __init__(
        self,
        *,
        registry: AssetRegistry,
        book: PositionBook,
        feed: PriceFeed,
        signals: SignalProvider,
        risk: RiskBook,
        activity: ActivityLog,
        sentiment_threshold: float = SENTIMENT_THRESHOLD,
        signal_timeout_s: float = 20.0,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self.registry = registry
        self.book = book
        self.feed = feed
        self.signals = signals
        self.risk = risk
        self.activity = activity
        self.sentiment_threshold = float(sentiment_threshold)
        self.signal_timeout_s = float(signal_timeout_s)
        self.metrics = metrics or MetricsRegistry()
        self._analyses: dict[Symbol, Analysis] = {}

    def analyses(self) -> dict[Symbol, Analysis | None]:
        latest = self._analyses
        return {sym: latest.get(sym) for sym in self.registry.symbols}

    async def run_cycle(self, *, should_continue: Callable[[], bool] | None = None) -> DecisionCycleResult:
        """One pass over the universe.

        ``should_continue`` is checked before each symbol; once it returns False
        the cycle stops without touching the remaining symbols.
        """

        result = DecisionCycleResult(started_at=utc_now())
        symbols = self.registry.symbols
        self.activity.append(f"Cron: Scanning markets ({', '.join(symbols)})...", Severity.INFO)

        for sym in symbols:
            if should_continue is not None and not should_continue():
                logger.info("decision_cycle_interrupted", extra={"next_symbol": sym.value})
                return result
            await self._process_symbol(sym, result)

        self.book.mark_decision_run(utc_now())
        self.metrics.counter("scheduler.cycles").inc()
        result.completed = True
        return result

    async def _process_symbol(self, sym: Symbol, result: DecisionCycleResult) -> None:
        try:
            analysis = await asyncio.wait_for(self.signals.analyze(sym), timeout=self.signal_timeout_s)
        except (ProviderError, TimeoutError) as e:
            reason = str(e) or type(e).__name__
            logger.warning("signal_provider_failed", extra={"symbol": sym.value, "reason": reason})
            self.activity.append(f"[{sym}] Analysis failed: {reason}. Skipping.", Severity.WARNING)
            self.metrics.counter("scheduler.provider_failures").inc()
            result.skipped.append(sym)
            return
        except Exception:  # noqa: BLE001 - per-symbol isolation boundary
            logger.exception("signal_provider_crashed", extra={"symbol": sym.value})
            self.metrics.counter("scheduler.provider_failures").inc()
            result.skipped.append(sym)
            return

        self._analyses = {**self._analyses, sym: analysis}

        # Fresh reads after the await: the fast loop may have moved things meanwhile.
        price = self.feed.current_price(sym)
        held = self.book.open_trade_for(sym)
        target = analysis.decision.direction

        if held is not None:
            if target is held.direction.opposite:
                self._close_on_reversal(held, price, result)
            return

        if target is None:
            return

        if abs(analysis.sentiment_score) <= self.sentiment_threshold:
            logger.info(
                "signal_below_threshold",
                extra={"symbol": sym.value, "sentiment_score": analysis.sentiment_score},
            )
            return

        asset = self.registry.get(sym)
        try:
            trade = self.book.open_trade(
                symbol=sym,
                direction=target,
                entry_price=price,
                risk=self.risk.get(sym),
                contract_size=asset.contract_size,
            )
        except SizeTooSmallError as e:
            logger.warning("size_too_small", extra={"symbol": sym.value, "risk_amount": e.risk_amount})
            self.activity.append(f"[{sym}] Calculated lot size too small. skipping.", Severity.WARNING)
            return
        except InvariantViolationError:
            logger.exception("position_book_invariant_violation", extra={"symbol": sym.value})
            self.activity.append(f"[{sym}] Refused to open a second position.", Severity.ERROR)
            return

        result.opened.append(trade)
        self.metrics.counter("scheduler.opened").inc()
        self.activity.append(
            f"[{sym}] Opened {trade.direction.side} {trade.lot_size:.2f} Lots @ {price:.2f}.",
            Severity.SUCCESS,
        )

    def _close_on_reversal(self, held: Trade, price: float, result: DecisionCycleResult) -> None:
        try:
            pnl = self.book.close_trade(held.id, close_price=price, reason=CloseReason.REVERSAL)
        except CloseRejectedError:
            logger.info("reversal_close_superseded", extra={"trade_id": held.id})
            return

        closed = self.book.get(held.id)
        if closed is not None:
            result.closed.append(closed)
        self.metrics.counter("scheduler.reversals").inc()
        self.activity.append(
            f"[{held.symbol}] Closed {held.direction.side} on reversal. PnL: ${pnl:.2f}",
            Severity.SUCCESS if pnl >= 0 else Severity.WARNING,
        )
