"""sentitrade.execution.position_sizer

Risk-budget position sizing.

    risk_amount = balance * risk_percentage / 100
    lot_size    = round(risk_amount / (stop_loss_distance * contract_size), 2)

A full stop-out on a fresh position therefore costs (roughly) ``risk_amount``.
Pure functions only: no state, no locks, safe from any thread.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sentitrade.core.exceptions import SizeTooSmallError
from sentitrade.core.types import Direction, RiskSettings

_LOT_STEP = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class SizeResult:
    lot_size: float
    risk_amount: float


def round_lots(raw: float) -> float:
    """Round to the 0.01 lot step, half away from zero."""

    return float(Decimal(repr(float(raw))).quantize(_LOT_STEP, rounding=ROUND_HALF_UP))


class PositionSizer:
    def size(self, *, balance: float, risk: RiskSettings, contract_size: float) -> SizeResult:
        """Compute lot size and money at risk.

        Raises:
            SizeTooSmallError: when the rounded lot size is not positive, including
                degenerate inputs (non-positive balance, contract size, or stop distance).
        """

        bal = float(balance)
        risk_amount = bal * float(risk.risk_percentage) / 100.0
        per_lot = float(risk.stop_loss_distance) * float(contract_size)

        if not math.isfinite(risk_amount) or not math.isfinite(per_lot) or per_lot <= 0:
            raise SizeTooSmallError("degenerate sizing inputs", lot_size=0.0, risk_amount=risk_amount)

        lot_size = round_lots(risk_amount / per_lot)
        if lot_size <= 0:
            raise SizeTooSmallError(
                f"lot size {lot_size:.2f} is below the minimum step",
                lot_size=lot_size,
                risk_amount=risk_amount,
            )
        return SizeResult(lot_size=lot_size, risk_amount=float(risk_amount))

    @staticmethod
    def stop_loss_price(*, direction: Direction, entry_price: float, stop_loss_distance: float) -> float:
        if direction is Direction.LONG:
            return float(entry_price) - float(stop_loss_distance)
        return float(entry_price) + float(stop_loss_distance)
