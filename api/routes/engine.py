from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.auth import AuthDep
from api.deps import get_engine
from api.schemas.engine import ActivityEntryResponse, EngineStatus
from sentitrade.brain.engine import TradingEngine

router = APIRouter(dependencies=[AuthDep])


def _status(engine: TradingEngine) -> EngineStatus:
    return EngineStatus(
        state=engine.state.value,
        status_message=engine.status_message,
        monitoring=engine.monitoring,
        decision_interval_s=engine.config.engine.decision_interval_s,
        mark_interval_s=engine.config.engine.mark_interval_s,
        last_decision_run_at=engine.ledger().last_decision_run_at,
        metrics=engine.metrics.snapshot(),
    )


@router.get("/engine", response_model=EngineStatus)
def engine_status(engine: TradingEngine = Depends(get_engine)) -> EngineStatus:
    return _status(engine)


@router.post("/engine/start", response_model=EngineStatus)
async def engine_start(engine: TradingEngine = Depends(get_engine)) -> EngineStatus:
    """Start the decision loop. A scan runs immediately. Starting twice is a no-op."""

    await engine.start()
    return _status(engine)


@router.post("/engine/stop", response_model=EngineStatus)
async def engine_stop(engine: TradingEngine = Depends(get_engine)) -> EngineStatus:
    await engine.stop()
    return _status(engine)


@router.get("/activity", response_model=list[ActivityEntryResponse])
def recent_activity(
    limit: int | None = Query(default=None, ge=0, le=500),
    engine: TradingEngine = Depends(get_engine),
) -> list[ActivityEntryResponse]:
    """Activity feed, oldest first."""

    return [
        ActivityEntryResponse(seq=e.seq, ts=e.ts, message=e.message, severity=e.severity.value)
        for e in engine.activity_entries(limit)
    ]
