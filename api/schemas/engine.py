from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class EngineStatus(BaseModel):
    state: str
    status_message: str
    monitoring: bool
    decision_interval_s: float
    mark_interval_s: float
    last_decision_run_at: datetime | None = None
    metrics: dict[str, dict[str, float]] = Field(default_factory=dict)


class ActivityEntryResponse(BaseModel):
    seq: int
    ts: datetime
    message: str
    severity: str
