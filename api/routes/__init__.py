from __future__ import annotations

from fastapi import APIRouter

from api.routes import account, engine, health, market, risk, trades


def get_api_router() -> APIRouter:
    router = APIRouter()

    router.include_router(health.router, tags=["health"])
    router.include_router(account.router, tags=["account"])
    router.include_router(trades.router, tags=["trades"])
    router.include_router(market.router, tags=["market"])
    router.include_router(engine.router, tags=["engine"])
    router.include_router(risk.router, tags=["risk"])

    return router
