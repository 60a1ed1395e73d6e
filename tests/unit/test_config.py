from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from sentitrade.core.config import Config
from sentitrade.core.exceptions import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[2]


def _copy_config(tmp_path: Path) -> Path:
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir(parents=True, exist_ok=True)
    shutil.copy2(REPO_ROOT / "config" / "default.yaml", cfg_dir / "default.yaml")
    shutil.copytree(REPO_ROOT / "config" / "presets", cfg_dir / "presets")
    return cfg_dir


def test_repo_defaults_load_balanced_preset(tmp_path: Path) -> None:
    cfg = Config.from_yaml(_copy_config(tmp_path) / "default.yaml")

    assert cfg.preset == "balanced"
    assert cfg.engine.initial_balance == 50_000.0
    assert cfg.engine.decision_interval_s == 30
    assert cfg.engine.mark_interval_s == 2
    assert cfg.engine.sentiment_threshold == 0.4
    assert cfg.risk.default_risk_percentage == 1.0
    assert cfg.activity.max_entries == 50
    assert set(cfg.assets) == {"XAUUSD", "BTCUSD", "ETHUSD"}


def test_config_loads_from_yaml_and_preset_chain(tmp_path: Path) -> None:
    cfg_dir = _copy_config(tmp_path)
    (cfg_dir / "user.yaml").write_text("preset: conservative\n")

    cfg = Config.load(tmp_path)
    assert cfg.preset == "conservative"
    assert cfg.risk.default_risk_percentage == 0.5
    assert cfg.engine.sentiment_threshold == 0.6


def test_yaml_overrides_preset(tmp_path: Path) -> None:
    cfg_dir = _copy_config(tmp_path)
    (cfg_dir / "user.yaml").write_text("preset: aggressive\nrisk:\n  default_risk_percentage: 1.5\n")

    cfg = Config.load(tmp_path)
    assert cfg.risk.default_risk_percentage == 1.5
    assert cfg.risk.symbols["XAUUSD"].stop_loss_distance == 3.0


def test_config_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENTITRADE_ENGINE__INITIAL_BALANCE", "1000")
    cfg = Config()  # BaseSettings reads env
    assert cfg.engine.initial_balance == 1000.0


def test_env_beats_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENTITRADE_API__AUTH_TOKEN", "from-env")
    cfg_dir = _copy_config(tmp_path)
    (cfg_dir / "user.yaml").write_text("api:\n  auth_token: from-yaml\n  port: 6060\n")

    cfg = Config.load(tmp_path)
    assert cfg.api.auth_token == "from-env"
    assert cfg.api.port == 6060


def test_config_from_yaml_raises_if_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Config.from_yaml(tmp_path / "missing.yaml")


def test_unknown_asset_symbol_is_config_error(tmp_path: Path) -> None:
    cfg_dir = _copy_config(tmp_path)
    (cfg_dir / "user.yaml").write_text("assets:\n  DOGEUSD:\n    contract_size: 1\n")
    with pytest.raises(ConfigError):
        Config.load(tmp_path)


def test_unknown_risk_symbol_is_config_error(tmp_path: Path) -> None:
    cfg_dir = _copy_config(tmp_path)
    (cfg_dir / "user.yaml").write_text("risk:\n  symbols:\n    SPX:\n      risk_percentage: 1\n")
    with pytest.raises(ConfigError):
        Config.load(tmp_path)


def test_invalid_values_are_config_error(tmp_path: Path) -> None:
    cfg_dir = _copy_config(tmp_path)
    (cfg_dir / "user.yaml").write_text("assets:\n  XAUUSD:\n    contract_size: 0\n")
    with pytest.raises(ConfigError):
        Config.load(tmp_path)


def test_partial_asset_override_keeps_defaults() -> None:
    cfg = Config(assets={"XAUUSD": {"contract_size": 50}})
    gold = cfg.assets["XAUUSD"]
    assert gold.contract_size == 50
    assert gold.default_stop_distance == 5.0
    assert gold.initial_price == 2750.0
    assert list(cfg.assets) == ["XAUUSD"]
