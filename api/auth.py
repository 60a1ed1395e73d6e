"""Bearer-token guard for every route except `/health`.

The expected token is `api.auth_token` from the app's config. Empty means the
operator started the API with `SENTITRADE_INSECURE_OK` and auth is off.
"""

from __future__ import annotations

import hmac

from fastapi import Depends, Header

from api.deps import get_config
from api.errors import ApiError
from sentitrade.core.config import Config


def _unauthorized(code: str, message: str) -> ApiError:
    return ApiError(code=code, message=message, status=401)


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise _unauthorized("auth.missing_token", "Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("auth.invalid_header", "Expected 'Authorization: Bearer <token>'")
    return token.strip()


def require_bearer_token(
    authorization: str | None = Header(default=None, alias="Authorization"),
    config: Config = Depends(get_config),
) -> None:
    expected = config.api.auth_token
    if not expected:
        return
    if not hmac.compare_digest(bearer_token(authorization).encode(), expected.encode()):
        raise _unauthorized("auth.invalid_token", "Invalid bearer token")


AuthDep = Depends(require_bearer_token)
