"""
FastAPI exception handlers for AgentationError and routing errors.

Looks up the registry and returns a structured JSON error response
of the form {"error": <message>, "code": <registry code>}.
Unknown codes get a safe 500 fallback.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentation.core.errors import AgentationError
from agentation.core.errors.registry import error_registry

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "AGT-SYS-001"


def internal_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": INTERNAL_ERROR_CODE},
    )


async def agentation_error_handler(request: Request, exc: AgentationError) -> JSONResponse:
    """Convert AgentationError into a structured JSON response."""
    entry = error_registry.get(exc.code)

    if entry is None:
        logger.error(
            "unregistered_error_code",
            extra={"error.code": exc.code, "error.message": exc.detail},
        )
        return internal_error_response()

    log_extra = {
        "error.code": exc.code,
        "error.kind": exc.kind,
        "error.message_safe": exc.message or entry.safe_message,
        "error.message": exc.detail,
        "http.method": request.method,
        "http.path": request.url.path,
        **{f"error.ctx.{k}": v for k, v in exc.context.items()},
    }
    _severity_to_log_fn(entry.severity)(entry.title, extra=log_extra)

    # 5xx never carry caller-supplied text
    message = entry.safe_message if entry.http_status >= 500 else (exc.message or entry.safe_message)
    return JSONResponse(
        status_code=entry.http_status,
        content={"error": message, "code": entry.code},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing misses in the same JSON error shape."""
    status_code = exc.status_code
    headers = getattr(exc, "headers", None)
    # A known path with an unrouted method is reported like an unknown path
    if status_code == 405:
        status_code, headers = 404, None
    code = f"AGT-API-{status_code}"
    entry = error_registry.get(code)
    message = entry.safe_message if entry else str(exc.detail)
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code if entry else None},
        headers=headers,
    )


def _severity_to_log_fn(severity: str):
    """Map registry severity to logger method."""
    return {
        "DEBUG": logger.debug,
        "INFO": logger.info,
        "WARN": logger.warning,
        "ERROR": logger.error,
        "CRITICAL": logger.critical,
    }.get(severity, logger.error)
