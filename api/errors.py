from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from sentitrade.core.exceptions import InvariantViolationError


class ApiError(Exception):
    def __init__(self, code: str, message: str, status: int = 400, **extra: object) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.extra = extra


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = {"error": {"code": exc.code, "message": exc.message, **exc.extra}}
    return JSONResponse(status_code=exc.status, content=body)


async def invariant_violation_handler(request: Request, exc: InvariantViolationError) -> JSONResponse:
    body = {"error": {"code": "engine.invariant_violation", "message": str(exc)}}
    return JSONResponse(status_code=409, content=body)
