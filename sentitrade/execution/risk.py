"""sentitrade.execution.risk

Per-symbol risk settings, owned by the user.

Changed only by explicit user action. Reads always see a complete settings
object; an update affects the next sizing decision and never resizes a trade
that is already open.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping

from sentitrade.core.types import RiskSettings, Symbol


class RiskBook:
    def __init__(self, initial: Mapping[Symbol, RiskSettings]) -> None:
        if not initial:
            raise ValueError("RiskBook needs settings for at least one symbol")
        self._lock = threading.Lock()
        self._settings: dict[Symbol, RiskSettings] = dict(initial)

    def get(self, symbol: Symbol) -> RiskSettings:
        with self._lock:
            try:
                return self._settings[symbol]
            except KeyError:
                raise KeyError(f"Symbol not configured: {symbol}") from None

    def update(self, symbol: Symbol, settings: RiskSettings) -> RiskSettings:
        with self._lock:
            if symbol not in self._settings:
                raise KeyError(f"Symbol not configured: {symbol}")
            self._settings[symbol] = settings
            return settings

    def all(self) -> dict[Symbol, RiskSettings]:
        with self._lock:
            return dict(self._settings)
