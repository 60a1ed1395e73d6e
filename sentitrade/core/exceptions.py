"""sentitrade.core.exceptions

Errors are part of the interface.

Recoverable trading outcomes and contract violations live in separate branches
so callers can tell a lost race from a bug.
"""

from __future__ import annotations


class SentitradeError(Exception):
    """Base exception for sentitrade."""


class ConfigError(SentitradeError):
    """Configuration is missing, invalid, or inconsistent."""


class ProviderError(SentitradeError):
    """A signal or price source was unreachable or returned garbage."""


class SizeTooSmallError(SentitradeError):
    """The risk budget does not buy a single hundredth of a lot."""

    def __init__(self, message: str, *, lot_size: float = 0.0, risk_amount: float = 0.0) -> None:
        super().__init__(message)
        self.lot_size = float(lot_size)
        self.risk_amount = float(risk_amount)


class CloseRejectedError(SentitradeError):
    """A close request that found nothing to close."""


class TradeAlreadyClosedError(CloseRejectedError):
    """Somebody else got there first."""


class TradeNotFoundError(CloseRejectedError):
    """Unknown trade id."""


class InvariantViolationError(SentitradeError):
    """The caller broke a position book contract."""


class PositionAlreadyOpenError(InvariantViolationError):
    """One open trade per symbol. No exceptions."""
