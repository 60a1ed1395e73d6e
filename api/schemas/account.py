from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AccountResponse(BaseModel):
    balance: float
    equity: float
    initial_balance: float
    floating_pnl: float
    realized_pnl: float
    unrealized_pnl: float
    open_trades: int
    last_decision_run_at: datetime | None = None
