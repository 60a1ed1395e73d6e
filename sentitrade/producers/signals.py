"""sentitrade.producers.signals

Signal provider boundary.

The engine only needs ``analyze(symbol) -> Analysis``. Whatever sits behind the
endpoint (an LLM with news search, a sentiment model, a human) is not our
concern. Responses are validated here; anything malformed is a
:class:`ProviderError` and the symbol is skipped for the cycle.

Easter egg:
- Sentiment is the shadow of positioning.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from sentitrade.core.client import DataClient
from sentitrade.core.exceptions import ProviderError
from sentitrade.core.time import ensure_utc
from sentitrade.core.types import Analysis, Decision, NewsSource, SentimentCategory, Symbol


@runtime_checkable
class SignalProvider(Protocol):
    async def analyze(self, symbol: Symbol) -> Analysis: ...


class SourcePayload(BaseModel):
    title: str = ""
    url: str = ""


class AnalysisPayload(BaseModel):
    decision: Decision
    sentiment_score: float = Field(ge=-1.0, le=1.0)
    sentiment_category: SentimentCategory | None = None
    reasoning: str = ""
    sources: list[SourcePayload] = Field(default_factory=list)

    @field_validator("decision", "sentiment_category", mode="before")
    @classmethod
    def upper_case_enums(cls, v: Any) -> Any:
        return v.upper().strip() if isinstance(v, str) else v

    def to_analysis(self, symbol: Symbol, *, received_at: datetime | None = None) -> Analysis:
        category = self.sentiment_category
        if category is None:
            if self.sentiment_score > 0:
                category = SentimentCategory.POSITIVE
            elif self.sentiment_score < 0:
                category = SentimentCategory.NEGATIVE
            else:
                category = SentimentCategory.NEUTRAL
        return Analysis(
            symbol=symbol,
            decision=self.decision,
            sentiment_score=float(self.sentiment_score),
            sentiment_category=category,
            reasoning=self.reasoning,
            received_at=ensure_utc(received_at),
            sources=[NewsSource(title=s.title, url=s.url) for s in self.sources if s.url or s.title],
        )


class HttpSignalProvider:
    """POST ``{"symbol": ...}`` to a configured endpoint, expect one analysis back."""

    def __init__(self, client: DataClient, *, endpoint_url: str, api_key: str = "") -> None:
        self.client = client
        self.endpoint_url = endpoint_url
        self.api_key = api_key

    async def analyze(self, symbol: Symbol) -> Analysis:
        if not self.endpoint_url:
            raise ProviderError("signal endpoint not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        try:
            data: Any = await self.client.request_json(
                "POST", self.endpoint_url, json={"symbol": symbol.value}, headers=headers, expected=dict
            )
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"signals: {type(e).__name__}: {e}") from e

        if isinstance(data.get("data"), dict):
            data = data["data"]

        try:
            payload = AnalysisPayload.model_validate(data)
        except ValidationError as e:
            raise ProviderError(f"signals: invalid analysis for {symbol}: {e.error_count()} errors") from e
        return payload.to_analysis(symbol)
