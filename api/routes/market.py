from __future__ import annotations

from fastapi import APIRouter, Depends

from api.auth import AuthDep
from api.deps import get_engine
from api.schemas.market import AnalysisResponse, AssetResponse
from sentitrade.brain.engine import TradingEngine

router = APIRouter(dependencies=[AuthDep])


@router.get("/assets", response_model=list[AssetResponse])
def list_assets(engine: TradingEngine = Depends(get_engine)) -> list[AssetResponse]:
    return [AssetResponse.from_asset(a) for a in engine.registry]


@router.get("/prices", response_model=dict[str, float])
def latest_prices(engine: TradingEngine = Depends(get_engine)) -> dict[str, float]:
    return {sym.value: px for sym, px in engine.prices().items()}


@router.get("/analyses", response_model=dict[str, AnalysisResponse | None])
def latest_analyses(engine: TradingEngine = Depends(get_engine)) -> dict[str, AnalysisResponse | None]:
    """Latest analysis per symbol; null until the first scan reaches it."""

    return {
        sym.value: AnalysisResponse.from_analysis(a) if a is not None else None
        for sym, a in engine.analyses().items()
    }
