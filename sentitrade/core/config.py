"""sentitrade.core.config

Three config surfaces only:
1) `config/default.yaml` + `config/presets/*.yaml` (+ optional `config/user.yaml`)
2) Environment variables (`SENTITRADE_` prefix, `__` for nesting)
3) Explicit user actions at runtime (risk settings), never written back

Everything else is derived.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from sentitrade.core.exceptions import ConfigError
from sentitrade.core.types import Symbol


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _check_symbol_keys(keys: Any) -> None:
    known = {s.value for s in Symbol}
    unknown = sorted(str(k) for k in keys if str(k).upper() not in known)
    if unknown:
        raise ValueError(f"Unsupported symbols: {', '.join(unknown)}")


class AssetConfig(BaseModel):
    """Static instrument definition. Never mutated after load."""

    display_name: str
    contract_size: float = Field(gt=0)
    default_stop_distance: float = Field(gt=0)
    initial_price: float = Field(gt=0)
    fallback_price: float = Field(gt=0)
    # Synthetic fallback: slow sine wave + bounded uniform noise around the anchor.
    wave_amplitude: float = Field(default=0.0, ge=0)
    wave_period_s: float = Field(default=10.0, gt=0)
    noise: float = Field(default=0.0, ge=0)


DEFAULT_ASSETS: dict[str, dict[str, Any]] = {
    "XAUUSD": {
        "display_name": "Gold vs US Dollar",
        "contract_size": 100.0,  # 1 lot = 100 oz
        "default_stop_distance": 5.0,
        "initial_price": 2750.0,
        "fallback_price": 2650.0,
        "wave_amplitude": 5.0,
        "wave_period_s": 10.0,
        "noise": 1.0,
    },
    "BTCUSD": {
        "display_name": "Bitcoin vs US Dollar",
        "contract_size": 1.0,  # 1 lot = 1 BTC
        "default_stop_distance": 500.0,
        "initial_price": 97000.0,
        "fallback_price": 92000.0,
    },
    "ETHUSD": {
        "display_name": "Ethereum vs US Dollar",
        "contract_size": 10.0,  # 1 lot = 10 ETH
        "default_stop_distance": 25.0,
        "initial_price": 3350.0,
        "fallback_price": 3350.0,
    },
}


class EngineConfig(BaseModel):
    initial_balance: float = Field(default=50_000.0, gt=0)
    decision_interval_s: float = Field(default=30.0, gt=0)
    mark_interval_s: float = Field(default=2.0, gt=0)
    sentiment_threshold: float = Field(default=0.4, ge=0, le=1)
    signal_timeout_s: float = Field(default=20.0, gt=0)


class SymbolRiskConfig(BaseModel):
    risk_percentage: float | None = Field(default=None, gt=0, le=100)
    stop_loss_distance: float | None = Field(default=None, gt=0)


class RiskConfig(BaseModel):
    default_risk_percentage: float = Field(default=1.0, gt=0, le=100)
    symbols: dict[str, SymbolRiskConfig] = Field(default_factory=dict)

    @field_validator("symbols")
    @classmethod
    def symbols_must_be_supported(cls, v: dict[str, SymbolRiskConfig]) -> dict[str, SymbolRiskConfig]:
        _check_symbol_keys(v.keys())
        return {k.upper(): cfg for k, cfg in v.items()}


class PricesConfig(BaseModel):
    live: bool = True  # False: synthetic fallback only (offline runs)
    timeout_s: float = Field(default=5.0, gt=0)
    binance_url: str = "https://api.binance.com/api/v3/ticker/price"
    gold_url: str = "https://data-asg.goldprice.org/dbXRates/USD"


class SignalsConfig(BaseModel):
    endpoint_url: str = ""
    api_key: str = ""
    timeout_s: float = Field(default=20.0, gt=0)


class ActivityConfig(BaseModel):
    max_entries: int = Field(default=50, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class ApiConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 5050
    auth_token: str = ""
    cors_origins: list[str] = Field(default_factory=list)


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    config_dir: Path = Path("config")

    preset: Literal["conservative", "balanced", "aggressive", "custom"] = "balanced"

    engine: EngineConfig = Field(default_factory=EngineConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    # Keys select the traded universe; list a subset to trade fewer symbols.
    assets: dict[str, AssetConfig] = Field(
        default_factory=lambda: {k: AssetConfig(**v) for k, v in DEFAULT_ASSETS.items()}
    )
    prices: PricesConfig = Field(default_factory=PricesConfig)
    signals: SignalsConfig = Field(default_factory=SignalsConfig)
    activity: ActivityConfig = Field(default_factory=ActivityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    model_config = {"env_prefix": "SENTITRADE_", "env_nested_delimiter": "__"}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats YAML: secrets never have to live in a config file.
        return env_settings, init_settings, file_secret_settings

    @field_validator("assets", mode="before")
    @classmethod
    def assets_overlay_defaults(cls, v: Any) -> Any:
        # Partial overrides (e.g. only contract_size) keep the remaining defaults.
        if not isinstance(v, dict):
            return v
        _check_symbol_keys(v.keys())
        merged: dict[str, Any] = {}
        for key, value in v.items():
            sym = str(key).upper()
            if isinstance(value, dict):
                merged[sym] = _deep_merge(DEFAULT_ASSETS.get(sym, {}), value)
            else:
                merged[sym] = value
        return merged

    @field_validator("assets", mode="after")
    @classmethod
    def assets_must_not_be_empty(cls, v: dict[str, AssetConfig]) -> dict[str, AssetConfig]:
        if not v:
            raise ValueError("At least one asset must be configured")
        return v

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        raw = yaml.safe_load(path.read_text()) or {}

        preset_name = raw.get("preset", "balanced")
        preset_path = path.parent / "presets" / f"{preset_name}.yaml"
        if preset_path.exists():
            preset_data = yaml.safe_load(preset_path.read_text()) or {}
            raw = _deep_merge(preset_data, raw)

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        return cls.from_yaml(root / "config" / "default.yaml")

    @classmethod
    def load(cls, repo_root: Path | None = None) -> Config:
        """`config/user.yaml` when present, else the repo defaults."""

        root = repo_root or Path.cwd()
        user_path = root / "config" / "user.yaml"
        if user_path.exists():
            return cls.from_yaml(user_path)
        return cls.from_repo_defaults(root)
