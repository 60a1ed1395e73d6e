from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query

from api.auth import AuthDep
from api.deps import get_engine
from api.errors import ApiError
from api.schemas.common import ErrorResponse
from api.schemas.trades import TradeResponse
from sentitrade.brain.engine import TradingEngine
from sentitrade.core.types import TradeStatus

router = APIRouter(prefix="/trades", dependencies=[AuthDep])


@router.get("", response_model=list[TradeResponse])
def list_trades(
    status: TradeStatus | None = Query(default=None, description="Filter by open/closed"),
    engine: TradingEngine = Depends(get_engine),
) -> list[TradeResponse]:
    trades = engine.trades()
    if status is not None:
        trades = [t for t in trades if t.status is status]
    return [TradeResponse.from_trade(t) for t in trades]


@router.get("/{trade_id}", response_model=TradeResponse, responses={404: {"model": ErrorResponse}})
def get_trade(
    trade_id: str = Path(..., description="Trade id"),
    engine: TradingEngine = Depends(get_engine),
) -> TradeResponse:
    trade = engine.book.get(trade_id)
    if trade is None:
        raise ApiError(code="trades.not_found", message=f"Trade not found: {trade_id}", status=404)
    return TradeResponse.from_trade(trade)
