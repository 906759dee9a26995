"""Uniform JSON envelope: {success, data?, error?, message?}.

Handlers return `ok(...)` or raise `ApiError(status, message)`. The handlers
registered by `register_exception_handlers` make sure everything else (request
validation, auth dependencies, unroutable paths, stray exceptions) leaves the
API in the same shape.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


class ApiError(Exception):
    """An error that maps directly onto an HTTP status + envelope message."""

    def __init__(self, status_code: int, error: str, *, headers: Optional[Dict[str, str]] = None):
        super().__init__(error)
        self.status_code = int(status_code)
        self.error = error
        self.headers = headers


def ok(
    data: Any = None,
    *,
    message: Optional[str] = None,
    status_code: int = 200,
    **extra: Any,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def fail(status_code: int, error: str, *, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error}, headers=headers)


def pagination(total: int, limit: int, offset: int) -> Dict[str, Any]:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasMore": offset + limit < total,
    }


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = str(first.get("msg") or "invalid value")
    return f"{loc}: {msg}" if loc else msg


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(_request: Request, exc: ApiError) -> JSONResponse:
        return fail(exc.status_code, exc.error, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return fail(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return fail(404, "Route not found")
        if exc.status_code == 405:
            return fail(405, "Method not allowed")
        return fail(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        _debug(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
        return fail(500, "Internal server error")
