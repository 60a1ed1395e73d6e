"""sentitrade.core.assets

Asset registry: the static instrument table every other component reads.

Loaded once from config, validated against :class:`Symbol`, then frozen.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from types import MappingProxyType

from sentitrade.core.config import Config, RiskConfig
from sentitrade.core.exceptions import ConfigError
from sentitrade.core.types import RiskSettings, Symbol


@dataclass(frozen=True, slots=True)
class Asset:
    symbol: Symbol
    display_name: str
    contract_size: float
    default_stop_distance: float
    initial_price: float
    fallback_price: float
    wave_amplitude: float = 0.0
    wave_period_s: float = 10.0
    noise: float = 0.0


def parse_symbol(value: str | Symbol) -> Symbol:
    """Normalize user input into a :class:`Symbol`.

    Raises:
        ValueError: for unsupported symbols.
    """

    if isinstance(value, Symbol):
        return value
    try:
        return Symbol(str(value).upper().strip())
    except ValueError:
        raise ValueError(f"Unsupported symbol: {value}") from None


class AssetRegistry:
    def __init__(self, assets: dict[Symbol, Asset]) -> None:
        if not assets:
            raise ConfigError("AssetRegistry needs at least one asset")
        for sym, asset in assets.items():
            if asset.symbol is not sym:
                raise ConfigError(f"Asset keyed as {sym} declares symbol {asset.symbol}")
        # Declaration order of Symbol keeps per-cycle iteration deterministic.
        ordered = {s: assets[s] for s in Symbol if s in assets}
        self._assets = MappingProxyType(ordered)

    @classmethod
    def from_config(cls, config: Config) -> AssetRegistry:
        assets: dict[Symbol, Asset] = {}
        for key, cfg in config.assets.items():
            try:
                sym = parse_symbol(key)
            except ValueError as e:
                raise ConfigError(str(e)) from e
            assets[sym] = Asset(
                symbol=sym,
                display_name=cfg.display_name,
                contract_size=float(cfg.contract_size),
                default_stop_distance=float(cfg.default_stop_distance),
                initial_price=float(cfg.initial_price),
                fallback_price=float(cfg.fallback_price),
                wave_amplitude=float(cfg.wave_amplitude),
                wave_period_s=float(cfg.wave_period_s),
                noise=float(cfg.noise),
            )
        return cls(assets)

    @property
    def symbols(self) -> tuple[Symbol, ...]:
        return tuple(self._assets)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._assets

    def __iter__(self) -> Iterator[Asset]:
        return iter(self._assets.values())

    def __len__(self) -> int:
        return len(self._assets)

    def get(self, symbol: Symbol | str) -> Asset:
        sym = parse_symbol(symbol)
        try:
            return self._assets[sym]
        except KeyError:
            raise KeyError(f"Symbol not configured: {sym}") from None

    def default_risk_settings(self, risk: RiskConfig) -> dict[Symbol, RiskSettings]:
        """Initial per-symbol risk settings: asset defaults, then config overrides."""

        out: dict[Symbol, RiskSettings] = {}
        for asset in self:
            override = risk.symbols.get(asset.symbol.value)
            pct = risk.default_risk_percentage
            dist = asset.default_stop_distance
            if override is not None:
                if override.risk_percentage is not None:
                    pct = override.risk_percentage
                if override.stop_loss_distance is not None:
                    dist = override.stop_loss_distance
            out[asset.symbol] = RiskSettings(risk_percentage=float(pct), stop_loss_distance=float(dist))
        return out
