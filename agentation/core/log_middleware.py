"""
Starlette middleware for the HTTP adapter.

CorrelationMiddleware injects request_id and correlation_id into contextvars
so structlog processors include them in every log entry, and turns any
unhandled exception into a generic JSON 500.

CorsHeadersMiddleware stamps permissive CORS headers on every response and
answers OPTIONS preflights for any path with a bare 204.
"""
from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from agentation.core.errors.middleware import internal_error_response
from agentation.core.structured_logging import (
    correlation_id_var,
    request_id_var,
)

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
CORS_MAX_AGE = "86400"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Inject request_id / correlation_id into contextvars for every request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # Accept inbound headers or generate ids
        req_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        corr_id = request.headers.get("x-correlation-id") or uuid.uuid4().hex

        rid_token = request_id_var.set(req_id)
        cid_token = correlation_id_var.set(corr_id)

        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled exception on %s %s: %s",
                request.method, request.url.path, exc, exc_info=True,
            )
            response = internal_error_response()
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.info(
                "request_completed",
                extra={
                    "http.method": request.method,
                    "http.path": request.url.path,
                    "http.status_code": response.status_code if response else None,
                    "duration_ms": duration_ms,
                },
            )
            request_id_var.reset(rid_token)
            correlation_id_var.reset(cid_token)

        # Echo ids back in response headers
        response.headers["x-request-id"] = req_id
        response.headers["x-correlation-id"] = corr_id
        return response


class CorsHeadersMiddleware(BaseHTTPMiddleware):
    """Allow any origin. OPTIONS on any path is a bare 204."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(
                status_code=204,
                headers={**CORS_HEADERS, "Access-Control-Max-Age": CORS_MAX_AGE},
            )

        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response
