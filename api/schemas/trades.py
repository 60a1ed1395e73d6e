from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from sentitrade.core.types import Trade


class TradeResponse(BaseModel):
    id: str
    symbol: str
    direction: str
    side: str
    entry_price: float
    lot_size: float
    contract_size: float
    stop_loss_price: float
    risk_percentage_at_open: float
    risk_amount: float
    opened_at: datetime
    status: str
    close_price: float | None = None
    closed_at: datetime | None = None
    realized_pnl: float | None = None
    close_reason: str | None = None

    @classmethod
    def from_trade(cls, t: Trade) -> TradeResponse:
        return cls(
            id=t.id,
            symbol=t.symbol.value,
            direction=t.direction.value,
            side=t.direction.side,
            entry_price=t.entry_price,
            lot_size=t.lot_size,
            contract_size=t.contract_size,
            stop_loss_price=t.stop_loss_price,
            risk_percentage_at_open=t.risk_percentage_at_open,
            risk_amount=t.risk_amount,
            opened_at=t.opened_at,
            status=t.status.value,
            close_price=t.close_price,
            closed_at=t.closed_at,
            realized_pnl=t.realized_pnl,
            close_reason=t.close_reason.value if t.close_reason is not None else None,
        )
