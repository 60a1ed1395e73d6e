from __future__ import annotations

from fastapi import APIRouter, Depends

from api.auth import AuthDep
from api.deps import get_engine
from api.schemas.account import AccountResponse
from sentitrade.brain.engine import TradingEngine

router = APIRouter(prefix="/account", dependencies=[AuthDep])


@router.get("", response_model=AccountResponse)
def get_account(engine: TradingEngine = Depends(get_engine)) -> AccountResponse:
    ledger = engine.ledger()
    pnl = engine.pnl()
    return AccountResponse(
        balance=ledger.balance,
        equity=ledger.equity,
        initial_balance=ledger.initial_balance,
        floating_pnl=ledger.equity - ledger.balance,
        realized_pnl=pnl.realized_usd,
        unrealized_pnl=pnl.unrealized_usd,
        open_trades=len(engine.book.open_trades()),
        last_decision_run_at=ledger.last_decision_run_at,
    )
