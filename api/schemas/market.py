from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from sentitrade.core.assets import Asset
from sentitrade.core.types import Analysis


class AssetResponse(BaseModel):
    symbol: str
    display_name: str
    contract_size: float
    default_stop_distance: float
    initial_price: float
    fallback_price: float

    @classmethod
    def from_asset(cls, a: Asset) -> AssetResponse:
        return cls(
            symbol=a.symbol.value,
            display_name=a.display_name,
            contract_size=a.contract_size,
            default_stop_distance=a.default_stop_distance,
            initial_price=a.initial_price,
            fallback_price=a.fallback_price,
        )


class SourceResponse(BaseModel):
    title: str
    url: str


class AnalysisResponse(BaseModel):
    symbol: str
    decision: str
    sentiment_score: float
    sentiment_category: str
    reasoning: str
    received_at: datetime
    sources: list[SourceResponse] = []

    @classmethod
    def from_analysis(cls, a: Analysis) -> AnalysisResponse:
        return cls(
            symbol=a.symbol.value,
            decision=a.decision.value,
            sentiment_score=a.sentiment_score,
            sentiment_category=a.sentiment_category.value,
            reasoning=a.reasoning,
            received_at=a.received_at,
            sources=[SourceResponse(title=s.title, url=s.url) for s in a.sources],
        )
