from __future__ import annotations

import pytest

from api.auth import bearer_token
from api.errors import ApiError
from tests.unit._api_app import make_app
from tests.unit._api_test_client import make_client
from tests.unit._fakes import ScriptedSignals, build_engine


@pytest.mark.anyio
async def test_protected_routes_require_auth(test_config, monkeypatch):
    monkeypatch.setenv("SENTITRADE_INSECURE_OK", "1")
    engine = build_engine(ScriptedSignals(), config=test_config)
    app = make_app(test_config, engine, auth_token="secret")

    async with make_client(app) as ac:
        r = await ac.get("/api/v1/trades")
        assert r.status_code == 401
        assert r.json()["error"]["code"] == "auth.missing_token"

        r = await ac.get("/api/v1/trades", headers={"Authorization": "Token secret"})
        assert r.json()["error"]["code"] == "auth.invalid_header"

        r = await ac.post("/api/v1/engine/start", headers={"Authorization": "Bearer wrong"})
        assert r.status_code == 401
        assert r.json()["error"]["code"] == "auth.invalid_token"

        r = await ac.get("/api/v1/trades", headers={"Authorization": "Bearer secret"})
        assert r.status_code == 200

        r2 = await ac.get("/api/v1/health")
        assert r2.status_code == 200

    assert engine.activity_entries() == []
    await engine.close()


def test_bearer_token_parsing() -> None:
    assert bearer_token("Bearer  abc ") == "abc"
    assert bearer_token("bearer abc") == "abc"

    cases = [
        (None, "auth.missing_token"),
        ("", "auth.missing_token"),
        ("Bearer", "auth.invalid_header"),
        ("Bearer   ", "auth.invalid_header"),
        ("Basic abc", "auth.invalid_header"),
    ]
    for header, code in cases:
        with pytest.raises(ApiError) as exc:
            bearer_token(header)
        assert exc.value.code == code
        assert exc.value.status == 401


@pytest.mark.anyio
async def test_token_comparison_is_exact(test_config, monkeypatch):
    monkeypatch.setenv("SENTITRADE_INSECURE_OK", "1")
    engine = build_engine(ScriptedSignals(), config=test_config)
    app = make_app(test_config, engine, auth_token="secret")

    async with make_client(app) as ac:
        for candidate in ("secre", "secret2", "SECRET"):
            r = await ac.get("/api/v1/account", headers={"Authorization": f"Bearer {candidate}"})
            assert r.status_code == 401
            assert r.json()["error"]["code"] == "auth.invalid_token"

    await engine.close()
