from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi import Path as PathParam

from api.auth import AuthDep
from api.deps import get_engine
from api.errors import ApiError
from api.schemas.common import ErrorResponse
from api.schemas.risk import RiskSettingsBody, RiskSettingsResponse
from sentitrade.brain.engine import TradingEngine
from sentitrade.core.assets import parse_symbol
from sentitrade.core.types import RiskSettings

router = APIRouter(prefix="/risk", dependencies=[AuthDep])


@router.get("", response_model=list[RiskSettingsResponse])
def list_risk_settings(engine: TradingEngine = Depends(get_engine)) -> list[RiskSettingsResponse]:
    return [
        RiskSettingsResponse(symbol=sym.value, risk_percentage=s.risk_percentage, stop_loss_distance=s.stop_loss_distance)
        for sym, s in engine.risk_settings().items()
    ]


@router.put("/{symbol}", response_model=RiskSettingsResponse, responses={404: {"model": ErrorResponse}})
def update_risk_settings(
    body: RiskSettingsBody,
    symbol: str = PathParam(..., description="Symbol, e.g. XAUUSD"),
    engine: TradingEngine = Depends(get_engine),
) -> RiskSettingsResponse:
    """Applies to future entries only; open trades keep their size and stop."""

    try:
        sym = parse_symbol(symbol)
    except ValueError as e:
        raise ApiError(code="risk.unknown_symbol", message=str(e), status=404) from e
    if sym not in engine.registry:
        raise ApiError(code="risk.unknown_symbol", message=f"Symbol not configured: {sym}", status=404)

    updated = engine.update_risk_settings(
        sym, RiskSettings(risk_percentage=body.risk_percentage, stop_loss_distance=body.stop_loss_distance)
    )
    return RiskSettingsResponse(
        symbol=sym.value, risk_percentage=updated.risk_percentage, stop_loss_distance=updated.stop_loss_distance
    )
