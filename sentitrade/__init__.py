"""sentitrade: a paper-trading engine driven by sentiment signals.

Two loops share one position book:

- a fast mark-to-market loop (prices, floating PnL, stop-losses)
- a slow decision loop (signals, reversals, new positions)

Nothing here touches a real venue. Every fill is simulated.
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "SIMULATION_DISCLAIMER",
]

__version__ = "1.0.0"

SIMULATION_DISCLAIMER = "This is a PAPER TRADING simulation. No real money is involved."
