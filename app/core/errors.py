# app/core/errors.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

log = logging.getLogger("app.errors")


# -----------------------------
# Trace / request id helpers
# -----------------------------
def _ensure_trace_id(request: Request) -> str:
    """
    Trace id for this request: the one set by RequestLoggingMiddleware,
    else an inbound correlation header, else a fresh one.
    """
    val = getattr(request.state, "trace_id", None)
    if val:
        return str(val)

    for h in ("x-request-id", "x-correlation-id", "x-trace-id"):
        v = request.headers.get(h)
        if v:
            request.state.trace_id = v
            return v

    new_id = uuid.uuid4().hex
    request.state.trace_id = new_id
    return new_id


def error_body(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    """`{"error": message}` plus `details` when there is something to add."""
    body: Dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return body


class ApiError(Exception):
    """Raised from routes with the status and message the client should see."""

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details


def _respond(request: Request, status_code: int, body: Dict[str, Any], headers=None) -> JSONResponse:
    headers = dict(headers or {})
    headers["X-Request-ID"] = _ensure_trace_id(request)
    return JSONResponse(status_code=status_code, headers=headers, content=jsonable_encoder(body))


def _level(status_code: int) -> int:
    return logging.ERROR if status_code >= 500 else logging.WARNING


# -----------------------------
# Install / register handlers
# -----------------------------
def register_exception_handlers(app: FastAPI) -> None:
    """
    Every error leaves the API as `{"error": ..., "details"?: ...}` with an
    X-Request-ID header. Tracebacks stay in the server log.
    """

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        log.log(
            _level(exc.status_code),
            "ApiError %s %s -> %s | trace_id=%s | message=%r",
            request.method,
            request.url.path,
            exc.status_code,
            _ensure_trace_id(request),
            exc.message,
        )
        return _respond(request, exc.status_code, error_body(exc.message, exc.details))

    @app.exception_handler(HTTPException)
    async def http_exc_handler(request: Request, exc: HTTPException):
        status_code = int(exc.status_code)
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        details = exc.detail if isinstance(exc.detail, dict) else None
        log.log(
            _level(status_code),
            "HTTPException %s %s -> %s | trace_id=%s | detail=%r",
            request.method,
            request.url.path,
            status_code,
            _ensure_trace_id(request),
            exc.detail,
        )
        return _respond(request, status_code, error_body(message, details), exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        # Malformed request envelope (e.g. non-JSON body): same contract as bad `data`
        errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
        log.warning(
            "ValidationError %s %s -> 400 | trace_id=%s | errors=%s",
            request.method,
            request.url.path,
            _ensure_trace_id(request),
            errors,
        )
        return _respond(request, 400, error_body("Invalid data", errors))

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        log.exception(
            "Unhandled exception %s %s -> 500 | trace_id=%s",
            request.method,
            request.url.path,
            _ensure_trace_id(request),
        )
        return _respond(request, 500, error_body("Server error"))
