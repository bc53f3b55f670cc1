# app/middleware/request_logging.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Iterable, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("app.request")


QUIET_PREFIXES: Tuple[str, ...] = (
    "/api/healthz",
    "/api/readyz",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
)


def _client_ip(request: Request) -> str:
    # First hop of X-Forwarded-For when behind a proxy
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    client = request.client
    return client.host if client else "unknown"


def _user_hint(request: Request) -> Optional[str]:
    # GET /api/compliance?userId=...; POST bodies are not read here
    return request.query_params.get("userId")


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request (method, path, status, duration, trace_id).
    Every response carries an X-Request-ID header; health/docs paths are
    not logged.
    """

    def __init__(self, app, quiet_prefixes: Iterable[str] = QUIET_PREFIXES):
        super().__init__(app)
        self.quiet_prefixes = tuple(quiet_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        method = request.method.upper()

        trace_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.trace_id = trace_id

        quiet = method == "OPTIONS" or path.startswith(self.quiet_prefixes)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Handlers in app.core.errors build the response
            if not quiet:
                logger.exception(
                    "request CRASH %s %s ip=%s dur_ms=%s trace_id=%s",
                    method,
                    path,
                    _client_ip(request),
                    int((time.perf_counter() - start) * 1000),
                    trace_id,
                )
            raise

        response.headers["X-Request-ID"] = trace_id
        if quiet:
            return response

        status = response.status_code
        logger.log(
            _level_for(status),
            "request %s %s -> %s user=%s ip=%s dur_ms=%s trace_id=%s",
            method,
            path,
            status,
            _user_hint(request) or "-",
            _client_ip(request),
            int((time.perf_counter() - start) * 1000),
            trace_id,
        )
        return response
