from __future__ import annotations

from pydantic import BaseModel, Field


class RiskSettingsBody(BaseModel):
    risk_percentage: float = Field(gt=0, le=100)
    stop_loss_distance: float = Field(gt=0)


class RiskSettingsResponse(BaseModel):
    symbol: str
    risk_percentage: float
    stop_loss_distance: float
