"""sentitrade.execution.pnl

P&L arithmetic shared by closures and mark-to-market.

One formula, used everywhere:

    diff = price - entry   (long)
    diff = entry - price   (short)
    pnl  = diff * contract_size * lot_size
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from sentitrade.core.types import Direction, Symbol, Trade


@dataclass(frozen=True, slots=True)
class PnLSnapshot:
    realized_usd: float
    unrealized_usd: float
    total_usd: float


def trade_pnl(*, direction: Direction, entry_price: float, price: float, lot_size: float, contract_size: float) -> float:
    diff = float(price) - float(entry_price)
    if direction is Direction.SHORT:
        diff = -diff
    return diff * float(contract_size) * float(lot_size)


def stop_breached(trade: Trade, price: float) -> bool:
    if trade.direction is Direction.LONG:
        return float(price) <= trade.stop_loss_price
    return float(price) >= trade.stop_loss_price


def snapshot(trades: Iterable[Trade], *, prices: Mapping[Symbol, float]) -> PnLSnapshot:
    """Realized over closed trades, unrealized over open trades with a known price."""

    realized = 0.0
    unreal = 0.0
    for t in trades:
        if not t.is_open:
            realized += float(t.realized_pnl or 0.0)
            continue
        px = prices.get(t.symbol)
        if px is None:
            continue
        unreal += trade_pnl(
            direction=t.direction,
            entry_price=t.entry_price,
            price=px,
            lot_size=t.lot_size,
            contract_size=t.contract_size,
        )
    return PnLSnapshot(realized_usd=float(realized), unrealized_usd=float(unreal), total_usd=float(realized + unreal))
