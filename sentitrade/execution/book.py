"""sentitrade.execution.book

Position book: the single source of truth for trades and the account ledger.

Every mutation runs the whole read-decide-write sequence under one re-entrant
lock, so:
- a symbol never has two OPEN trades
- a trade is closed at most once
- realized PnL lands on the balance exactly once, in the same step as the close

Equity is never accumulated; callers hand in the floating PnL of the trades
still open and the book derives ``equity = balance + floating``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Mapping
from datetime import datetime

from sentitrade.core.exceptions import PositionAlreadyOpenError, TradeAlreadyClosedError, TradeNotFoundError
from sentitrade.core.time import ensure_utc
from sentitrade.core.types import CloseReason, Direction, LedgerSnapshot, RiskSettings, Symbol, Trade
from sentitrade.execution.pnl import trade_pnl
from sentitrade.execution.position_sizer import PositionSizer

logger = logging.getLogger(__name__)


class PositionBook:
    def __init__(self, *, initial_balance: float, sizer: PositionSizer | None = None) -> None:
        if float(initial_balance) <= 0:
            raise ValueError("initial_balance must be > 0")
        self.sizer = sizer or PositionSizer()
        self._lock = threading.RLock()
        self._trades: dict[str, Trade] = {}  # insertion order == open order
        self._open_by_symbol: dict[Symbol, str] = {}
        self._initial_balance = float(initial_balance)
        self._balance = float(initial_balance)
        self._equity = float(initial_balance)
        self._last_decision_run_at: datetime | None = None

    # -- mutations ---------------------------------------------------------

    def open_trade(
        self,
        *,
        symbol: Symbol,
        direction: Direction,
        entry_price: float,
        risk: RiskSettings,
        contract_size: float,
        now: datetime | None = None,
    ) -> Trade:
        """Size and open a new trade.

        Raises:
            PositionAlreadyOpenError: the symbol already has an OPEN trade.
            SizeTooSmallError: the risk budget rounds to zero lots.
            ValueError: non-positive entry price.
        """

        entry = float(entry_price)
        if entry <= 0:
            raise ValueError("entry_price must be > 0")

        with self._lock:
            existing = self._open_by_symbol.get(symbol)
            if existing is not None:
                raise PositionAlreadyOpenError(f"{symbol} already has open trade {existing}")

            sized = self.sizer.size(balance=self._balance, risk=risk, contract_size=contract_size)
            trade = Trade(
                id=str(uuid.uuid4()),
                symbol=symbol,
                direction=direction,
                entry_price=entry,
                lot_size=sized.lot_size,
                contract_size=float(contract_size),
                stop_loss_price=self.sizer.stop_loss_price(
                    direction=direction, entry_price=entry, stop_loss_distance=risk.stop_loss_distance
                ),
                risk_percentage_at_open=float(risk.risk_percentage),
                risk_amount=sized.risk_amount,
                opened_at=ensure_utc(now),
            )
            self._trades[trade.id] = trade
            self._open_by_symbol[symbol] = trade.id

        logger.info(
            "trade_opened",
            extra={"trade_id": trade.id, "symbol": symbol.value, "direction": direction.value, "lot_size": trade.lot_size},
        )
        return trade

    def close_trade(
        self,
        trade_id: str,
        *,
        close_price: float,
        now: datetime | None = None,
        reason: CloseReason = CloseReason.MANUAL,
    ) -> float:
        """Close a trade and credit its realized PnL. Returns the realized PnL.

        Raises:
            TradeNotFoundError: unknown id.
            TradeAlreadyClosedError: lost the race; balance untouched.
        """

        with self._lock:
            trade = self._trades.get(trade_id)
            if trade is None:
                raise TradeNotFoundError(f"unknown trade {trade_id}")
            if not trade.is_open:
                raise TradeAlreadyClosedError(f"trade {trade_id} already closed ({trade.close_reason})")

            realized = trade_pnl(
                direction=trade.direction,
                entry_price=trade.entry_price,
                price=close_price,
                lot_size=trade.lot_size,
                contract_size=trade.contract_size,
            )
            self._trades[trade_id] = trade.closed(
                close_price=float(close_price),
                closed_at=ensure_utc(now),
                realized_pnl=realized,
                reason=reason,
            )
            del self._open_by_symbol[trade.symbol]
            self._balance += realized

        logger.info(
            "trade_closed",
            extra={"trade_id": trade_id, "symbol": trade.symbol.value, "reason": reason.value, "realized_pnl": realized},
        )
        return float(realized)

    def recompute_equity(self, floating_pnl_sum: float) -> float:
        with self._lock:
            self._equity = self._balance + float(floating_pnl_sum)
            return self._equity

    def revalue(self, prices: Mapping[Symbol, float]) -> tuple[float, float]:
        """Floating PnL of every OPEN trade at ``prices``, then equity from it.

        Both happen under the lock, so a concurrent close cannot slip between
        the floating sum and the balance it is added to. Returns
        ``(floating_pnl, equity)``.
        """

        with self._lock:
            floating = 0.0
            for t in self._trades.values():
                if not t.is_open:
                    continue
                px = prices.get(t.symbol)
                if px is None:
                    continue
                floating += trade_pnl(
                    direction=t.direction,
                    entry_price=t.entry_price,
                    price=px,
                    lot_size=t.lot_size,
                    contract_size=t.contract_size,
                )
            return floating, self.recompute_equity(floating)

    def mark_decision_run(self, ts: datetime | None = None) -> None:
        with self._lock:
            self._last_decision_run_at = ensure_utc(ts)

    # -- reads -------------------------------------------------------------

    def get(self, trade_id: str) -> Trade | None:
        with self._lock:
            return self._trades.get(trade_id)

    def open_trade_for(self, symbol: Symbol) -> Trade | None:
        with self._lock:
            tid = self._open_by_symbol.get(symbol)
            return None if tid is None else self._trades[tid]

    def open_trades(self) -> list[Trade]:
        with self._lock:
            return [t for t in self._trades.values() if t.is_open]

    def all_trades(self) -> list[Trade]:
        with self._lock:
            return list(self._trades.values())

    def ledger(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                balance=self._balance,
                equity=self._equity,
                initial_balance=self._initial_balance,
                last_decision_run_at=self._last_decision_run_at,
            )
