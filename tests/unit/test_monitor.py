from __future__ import annotations

import pytest

from sentitrade.brain.monitor import MarkToMarketMonitor
from sentitrade.core.activity import ActivityLog
from sentitrade.core.metrics import MetricsRegistry
from sentitrade.core.types import CloseReason, Direction, RiskSettings, Severity, Symbol, TradeStatus
from sentitrade.execution.book import PositionBook
from tests.unit._fakes import registry, static_feed


def _setup(prices=None):
    reg = registry()
    book = PositionBook(initial_balance=50_000.0)
    feed = static_feed(reg, prices)
    activity = ActivityLog()
    metrics = MetricsRegistry()
    mon = MarkToMarketMonitor(book=book, feed=feed, activity=activity, metrics=metrics)
    return book, feed, activity, metrics, mon


def _open_gold_long(book: PositionBook):
    return book.open_trade(
        symbol=Symbol.XAUUSD,
        direction=Direction.LONG,
        entry_price=2750.0,
        risk=RiskSettings(risk_percentage=1.0, stop_loss_distance=5.0),
        contract_size=100.0,
    )


@pytest.mark.anyio
async def test_stop_loss_hit_closes_at_current_price() -> None:
    book, feed, activity, metrics, mon = _setup()
    t = _open_gold_long(book)

    feed.sources[Symbol.XAUUSD].prices[Symbol.XAUUSD] = 2744.0
    res = await mon.run_cycle()

    closed = book.get(t.id)
    assert closed.status is TradeStatus.CLOSED
    assert closed.close_reason is CloseReason.STOP_LOSS
    assert closed.close_price == 2744.0
    assert closed.realized_pnl == pytest.approx(-600.0)
    assert book.ledger().balance == pytest.approx(49_400.0)
    assert res.stopped_out == [closed]
    assert res.equity == pytest.approx(49_400.0)

    last = activity.entries()[-1]
    assert last.severity is Severity.ERROR
    assert last.message == "[XAUUSD] Stop Loss Hit! Closed BUY @ 2744.00. PnL: $-600.00"
    assert metrics.counter("monitor.stop_outs").value == 1.0


@pytest.mark.anyio
async def test_unbreached_trade_is_marked_not_closed() -> None:
    book, feed, activity, _, mon = _setup()
    _open_gold_long(book)

    feed.sources[Symbol.XAUUSD].prices[Symbol.XAUUSD] = 2752.5
    res = await mon.run_cycle()

    assert res.stopped_out == []
    assert res.floating_pnl == pytest.approx(250.0)
    assert res.equity == pytest.approx(50_250.0)
    assert book.ledger().equity == pytest.approx(50_250.0)
    assert book.ledger().balance == 50_000.0
    assert len(activity) == 0


@pytest.mark.anyio
async def test_short_stop_loss_on_price_rise() -> None:
    book, feed, _, _, mon = _setup()
    t = book.open_trade(
        symbol=Symbol.BTCUSD,
        direction=Direction.SHORT,
        entry_price=97_000.0,
        risk=RiskSettings(risk_percentage=1.0, stop_loss_distance=500.0),
        contract_size=1.0,
    )
    assert t.stop_loss_price == 97_500.0

    feed.sources[Symbol.BTCUSD].prices[Symbol.BTCUSD] = 97_500.0
    await mon.run_cycle()
    assert book.get(t.id).realized_pnl == pytest.approx(-500.0)


@pytest.mark.anyio
async def test_stop_loss_race_lost_is_a_no_op() -> None:
    book, feed, activity, _, mon = _setup()
    t = _open_gold_long(book)
    feed.sources[Symbol.XAUUSD].prices[Symbol.XAUUSD] = 2744.0

    # The reversal close lands between the monitor's read of open trades and its close.
    original_open_trades = book.open_trades

    def _open_trades_then_reverse():
        trades = original_open_trades()
        book.close_trade(t.id, close_price=2746.0, reason=CloseReason.REVERSAL)
        return trades

    book.open_trades = _open_trades_then_reverse  # type: ignore[method-assign]
    res = await mon.run_cycle()

    assert res.stopped_out == []
    assert book.get(t.id).close_reason is CloseReason.REVERSAL
    assert book.ledger().balance == pytest.approx(49_600.0)
    assert len(activity) == 0


@pytest.mark.anyio
async def test_no_open_trades_equity_equals_balance() -> None:
    book, _, _, metrics, mon = _setup()
    res = await mon.run_cycle()
    assert res.equity == book.ledger().balance == 50_000.0
    assert metrics.gauge("account.equity").value == 50_000.0
