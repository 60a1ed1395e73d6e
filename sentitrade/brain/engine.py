"""sentitrade.brain.engine

The trading engine: owns both loops and the IDLE/RUNNING state machine.

"The conductor does not play the instruments." (Easter egg)

Lifecycle:
- ``open()`` starts the mark-to-market loop. It runs for the whole engine
  lifetime, independent of IDLE/RUNNING, so equity and stop-losses stay live
  while the decision loop is paused.
- ``start()`` moves to RUNNING, runs one decision cycle immediately, then one
  every ``decision_interval_s``.
- ``stop()`` moves to IDLE and cancels the schedule. An in-flight cycle
  finishes the symbol it is on and goes no further.
- ``close()`` stops everything and releases the HTTP client it created.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Final

from sentitrade.brain.monitor import MarkToMarketMonitor, MonitorCycleResult
from sentitrade.brain.scheduler import DecisionCycleResult, DecisionScheduler
from sentitrade.core.activity import ActivityEntry, ActivityLog
from sentitrade.core.assets import AssetRegistry
from sentitrade.core.client import ClientConfig, DataClient
from sentitrade.core.config import Config
from sentitrade.core.metrics import MetricsRegistry
from sentitrade.core.types import Analysis, EngineState, LedgerSnapshot, RiskSettings, Severity, Symbol, Trade
from sentitrade.execution.book import PositionBook
from sentitrade.execution.pnl import PnLSnapshot, snapshot
from sentitrade.execution.risk import RiskBook
from sentitrade.producers.prices import PriceFeed, build_price_feed
from sentitrade.producers.signals import HttpSignalProvider, SignalProvider

logger = logging.getLogger(__name__)

STATUS_MESSAGES: Final[dict[str, str]] = {
    "initial": "Bot is idle. Waiting to start.",
    EngineState.RUNNING: "Bot running...",
    EngineState.IDLE: "Bot stopped.",
}


async def _every(interval_s: float, halt: asyncio.Event, step: Callable[[], Awaitable[object]], *, name: str) -> None:
    """Run ``step`` now and then every ``interval_s`` until ``halt`` is set."""

    while not halt.is_set():
        try:
            await step()
        except Exception:  # noqa: BLE001 - a bad cycle must not kill the loop
            logger.exception("loop_cycle_failed", extra={"loop": name})
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(halt.wait(), timeout=interval_s)


class TradingEngine:
    def __init__(
        self,
        *,
        config: Config,
        registry: AssetRegistry,
        book: PositionBook,
        feed: PriceFeed,
        signals: SignalProvider,
        risk: RiskBook,
        activity: ActivityLog,
        metrics: MetricsRegistry | None = None,
        client: DataClient | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.book = book
        self.feed = feed
        self.signals = signals
        self.risk = risk
        self.activity = activity
        self.metrics = metrics or MetricsRegistry()
        self._client = client  # owned: closed in close()

        self.monitor = MarkToMarketMonitor(book=book, feed=feed, activity=activity, metrics=self.metrics)
        self.scheduler = DecisionScheduler(
            registry=registry,
            book=book,
            feed=feed,
            signals=signals,
            risk=risk,
            activity=activity,
            sentiment_threshold=config.engine.sentiment_threshold,
            signal_timeout_s=config.engine.signal_timeout_s,
            metrics=self.metrics,
        )

        self._state = EngineState.IDLE
        self.status_message = STATUS_MESSAGES["initial"]
        self._decision_halt: asyncio.Event | None = None
        self._decision_task: asyncio.Task[None] | None = None
        self._monitor_halt: asyncio.Event | None = None
        self._monitor_task: asyncio.Task[None] | None = None
        self._retired: set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        signals: SignalProvider | None = None,
        feed: PriceFeed | None = None,
    ) -> TradingEngine:
        """Wire the default collaborators from config."""

        registry = AssetRegistry.from_config(config)
        metrics = MetricsRegistry()
        client = DataClient(ClientConfig(timeout_s=max(config.prices.timeout_s, config.signals.timeout_s)))
        return cls(
            config=config,
            registry=registry,
            book=PositionBook(initial_balance=config.engine.initial_balance),
            feed=feed or build_price_feed(config.prices, registry, client, metrics=metrics),
            signals=signals
            or HttpSignalProvider(client, endpoint_url=config.signals.endpoint_url, api_key=config.signals.api_key),
            risk=RiskBook(registry.default_risk_settings(config.risk)),
            activity=ActivityLog(max_entries=config.activity.max_entries),
            metrics=metrics,
            client=client,
        )

    # -- lifecycle ---------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    async def open(self) -> None:
        if self.monitoring:
            return
        self._monitor_halt = asyncio.Event()
        self._monitor_task = asyncio.create_task(
            _every(self.config.engine.mark_interval_s, self._monitor_halt, self.monitor.run_cycle, name="mark_to_market"),
            name="sentitrade.mark_to_market",
        )
        logger.info("mark_to_market_started", extra={"interval_s": self.config.engine.mark_interval_s})

    async def close(self) -> None:
        await self.stop()
        pending = list(self._retired)
        if self._decision_task is not None:
            pending.append(self._decision_task)
        for task in pending:
            await self._drain(task)
        self._decision_task = None
        if self._monitor_halt is not None:
            self._monitor_halt.set()
        if self._monitor_task is not None:
            await self._drain(self._monitor_task)
            self._monitor_task = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def start(self) -> EngineState:
        if self._state is EngineState.RUNNING:
            return self._state

        self._state = EngineState.RUNNING
        self.status_message = STATUS_MESSAGES[EngineState.RUNNING]
        self.activity.append("System started.", Severity.INFO)

        # A previous cycle may still be finishing its current symbol; it has its
        # own halt event and stops on its own.
        previous = self._decision_task
        if previous is not None and not previous.done():
            self._retired.add(previous)
            previous.add_done_callback(self._retired.discard)

        halt = asyncio.Event()
        self._decision_halt = halt
        self._decision_task = asyncio.create_task(
            _every(
                self.config.engine.decision_interval_s,
                halt,
                lambda: self.scheduler.run_cycle(should_continue=lambda: not halt.is_set()),
                name="decision",
            ),
            name="sentitrade.decision",
        )
        logger.info("engine_started", extra={"interval_s": self.config.engine.decision_interval_s})
        return self._state

    async def stop(self) -> EngineState:
        if self._state is EngineState.IDLE:
            return self._state

        self._state = EngineState.IDLE
        self.status_message = STATUS_MESSAGES[EngineState.IDLE]
        if self._decision_halt is not None:
            self._decision_halt.set()
        self.activity.append("System stopped.", Severity.INFO)
        logger.info("engine_stopped")
        return self._state

    @staticmethod
    async def _drain(task: asyncio.Task[None]) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # -- one-shot cycles (CLI, tests) --------------------------------------

    async def run_decision_cycle(self) -> DecisionCycleResult:
        return await self.scheduler.run_cycle()

    async def run_mark_cycle(self) -> MonitorCycleResult:
        return await self.monitor.run_cycle()

    # -- commands ----------------------------------------------------------

    def update_risk_settings(self, symbol: Symbol, settings: RiskSettings) -> RiskSettings:
        """Replace a symbol's risk settings. Open trades keep their original size."""

        updated = self.risk.update(symbol, settings)
        logger.info(
            "risk_settings_updated",
            extra={
                "symbol": symbol.value,
                "risk_percentage": settings.risk_percentage,
                "stop_loss_distance": settings.stop_loss_distance,
            },
        )
        return updated

    # -- read-only snapshots -----------------------------------------------

    def ledger(self) -> LedgerSnapshot:
        return self.book.ledger()

    def trades(self) -> list[Trade]:
        return self.book.all_trades()

    def prices(self) -> dict[Symbol, float]:
        return self.feed.prices()

    def analyses(self) -> dict[Symbol, Analysis | None]:
        return self.scheduler.analyses()

    def risk_settings(self) -> dict[Symbol, RiskSettings]:
        return self.risk.all()

    def activity_entries(self, limit: int | None = None) -> list[ActivityEntry]:
        return self.activity.entries(limit)

    def pnl(self) -> PnLSnapshot:
        return snapshot(self.book.all_trades(), prices=self.feed.prices())
