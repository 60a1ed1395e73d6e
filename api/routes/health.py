from __future__ import annotations

import time

from fastapi import APIRouter, Request
from pydantic import BaseModel

from sentitrade import SIMULATION_DISCLAIMER, __version__

router = APIRouter()


class HealthResponse(BaseModel):
    version: str
    uptime_seconds: float
    engine_state: str | None = None
    disclaimer: str = SIMULATION_DISCLAIMER


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    started_at = float(getattr(request.app.state, "started_at", time.monotonic()))
    uptime = time.monotonic() - started_at

    engine = getattr(request.app.state, "engine", None)
    return HealthResponse(
        version=__version__,
        uptime_seconds=uptime,
        engine_state=engine.state.value if engine is not None else None,
    )
