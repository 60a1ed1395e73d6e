from __future__ import annotations

import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import _repo_root
from api.errors import ApiError, api_error_handler, invariant_violation_handler
from api.routes import get_api_router
from sentitrade import __version__
from sentitrade.core.config import Config
from sentitrade.core.exceptions import ConfigError, InvariantViolationError


def create_app() -> FastAPI:
    start = time.monotonic()

    # Security check: refuse to start with empty auth_token unless explicitly overridden
    config = Config.load(_repo_root())
    auth_token = str(config.api.auth_token or "")
    insecure_ok = os.environ.get("SENTITRADE_INSECURE_OK", "").lower() in ("1", "true", "yes")

    if not auth_token and not insecure_ok:
        msg = (
            "SECURITY ERROR: API auth_token is empty\n"
            "\n"
            "Set SENTITRADE_API__AUTH_TOKEN environment variable or add to config:\n"
            "  api:\n"
            "    auth_token: your-secret-token\n"
            "\n"
            "To run without auth (dev/test only), set SENTITRADE_INSECURE_OK=1"
        )
        raise RuntimeError(msg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = start

        # Expose config/engine in app state for dependency injection + tests.
        app.state.config = getattr(app.state, "config", None) or config

        from sentitrade.brain.engine import TradingEngine

        created_engine = False
        if getattr(app.state, "engine", None) is None:
            app.state.engine = TradingEngine.from_config(app.state.config)
            created_engine = True
            # Prices and stop-losses are marked from boot; trading waits for POST /engine/start.
            await app.state.engine.open()

        yield

        if created_engine:
            await app.state.engine.close()

    openapi_tags = [
        {"name": "health", "description": "Liveness and version metadata."},
        {"name": "account", "description": "Balance, equity and realized/unrealized P&L."},
        {"name": "trades", "description": "Paper trade history, open and closed."},
        {"name": "market", "description": "Asset table, latest prices and sentiment analyses."},
        {"name": "engine", "description": "Start/stop the decision loop and read its activity feed."},
        {"name": "risk", "description": "Per-symbol risk settings for future entries."},
    ]

    app = FastAPI(
        title="sentitrade API",
        description="sentitrade paper trading engine (simulation only, no real money)",
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(InvariantViolationError, invariant_violation_handler)

    # CORS: only enable if origins explicitly configured
    cors_origins = config.api.cors_origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(get_api_router(), prefix="/api/v1")
    return app


# Module-level app for uvicorn (e.g. `uvicorn api.main:app`).
# Guarded so test imports don't crash when auth_token or config files are missing.
try:
    app = create_app()
except (RuntimeError, ConfigError):
    app = None
