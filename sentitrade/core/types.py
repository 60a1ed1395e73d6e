"""sentitrade.core.types

Lightweight dataclasses for hot-path objects.

Pydantic models own IO boundaries; dataclasses keep runtime lean.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum


class Symbol(StrEnum):
    XAUUSD = "XAUUSD"
    BTCUSD = "BTCUSD"
    ETHUSD = "ETHUSD"


class Direction(StrEnum):
    LONG = "long"
    SHORT = "short"

    @property
    def side(self) -> str:
        """Order-ticket label used in activity messages."""

        return "BUY" if self is Direction.LONG else "SELL"

    @property
    def opposite(self) -> Direction:
        return Direction.SHORT if self is Direction.LONG else Direction.LONG


class Decision(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @property
    def direction(self) -> Direction | None:
        if self is Decision.BUY:
            return Direction.LONG
        if self is Decision.SELL:
            return Direction.SHORT
        return None


class SentimentCategory(StrEnum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class TradeStatus(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class CloseReason(StrEnum):
    REVERSAL = "reversal"
    STOP_LOSS = "stop_loss"
    MANUAL = "manual"


class EngineState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


class Severity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class RiskSettings:
    risk_percentage: float
    stop_loss_distance: float

    def __post_init__(self) -> None:
        pct = float(self.risk_percentage)
        if not math.isfinite(pct) or pct <= 0 or pct > 100:
            raise ValueError("risk_percentage must be in (0, 100]")
        dist = float(self.stop_loss_distance)
        if not math.isfinite(dist) or dist <= 0:
            raise ValueError("stop_loss_distance must be > 0")


@dataclass(frozen=True, slots=True)
class Trade:
    id: str
    symbol: Symbol
    direction: Direction
    entry_price: float
    lot_size: float
    contract_size: float
    stop_loss_price: float
    risk_percentage_at_open: float
    risk_amount: float
    opened_at: datetime
    status: TradeStatus = TradeStatus.OPEN
    close_price: float | None = None
    closed_at: datetime | None = None
    realized_pnl: float | None = None
    close_reason: CloseReason | None = None

    @property
    def is_open(self) -> bool:
        return self.status is TradeStatus.OPEN

    def closed(self, *, close_price: float, closed_at: datetime, realized_pnl: float, reason: CloseReason) -> Trade:
        """Return the CLOSED copy of this trade. Only valid on an open trade."""

        if not self.is_open:
            raise ValueError(f"trade {self.id} is already closed")
        return replace(
            self,
            status=TradeStatus.CLOSED,
            close_price=float(close_price),
            closed_at=closed_at,
            realized_pnl=float(realized_pnl),
            close_reason=reason,
        )


@dataclass(frozen=True, slots=True)
class NewsSource:
    title: str
    url: str


@dataclass(frozen=True, slots=True)
class Analysis:
    symbol: Symbol
    decision: Decision
    sentiment_score: float  # -1..1
    sentiment_category: SentimentCategory
    reasoning: str
    received_at: datetime
    sources: list[NewsSource] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    balance: float
    equity: float
    initial_balance: float
    last_decision_run_at: datetime | None = None
