from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import Request

from api.errors import ApiError
from sentitrade.brain.engine import TradingEngine
from sentitrade.core.config import Config


@lru_cache
def _repo_root() -> Path:
    # Assume running from repo root (uvicorn started there). Fallback to parent of this file.
    here = Path(__file__).resolve()
    for p in [Path.cwd(), here.parent.parent]:
        if (p / "config" / "default.yaml").exists():
            return p
    return Path.cwd()


@lru_cache
def _load_config() -> Config:
    return Config.load(_repo_root())


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "config", None)
    return cfg or _load_config()


def get_engine(request: Request) -> TradingEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise ApiError(code="engine.unavailable", message="Engine is not running", status=503)
    return engine
