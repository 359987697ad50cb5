"""
Structured logging with structlog.

Configures structlog to output JSON lines on stderr, plus an optional
rotating file. stdout is reserved for the MCP stdio transport, so nothing
here may ever write to it.

Works with stdlib logging too: logger.info(..., extra={...})
calls get enriched with the structlog processors below.
"""
from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import structlog

# ── Context vars for correlation ──────────────────────────────────────
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
tool_name_var: ContextVar[str | None] = ContextVar("tool_name", default=None)

APP_VERSION = "0.1.0"
SERVICE_NAME = "agentation"

_startup_time: float = time.time()


def get_uptime_s() -> float:
    return time.time() - _startup_time


def _inject_context(logger_name: str, method_name: str, event_dict: dict) -> dict:
    """Structlog processor: inject correlation context from contextvars."""
    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = APP_VERSION

    rid = request_id_var.get(None)
    if rid:
        event_dict["request_id"] = rid

    cid = correlation_id_var.get(None)
    if cid:
        event_dict["correlation_id"] = cid

    tool = tool_name_var.get(None)
    if tool:
        event_dict["tool_name"] = tool

    return event_dict


def _lowercase_level(logger_name: str, method_name: str, event_dict: dict) -> dict:
    level = event_dict.get("level")
    if level:
        event_dict["level"] = level.lower()
    return event_dict


def _drop_color_message(logger_name: str, method_name: str, event_dict: dict) -> dict:
    # uvicorn attaches an ANSI-coloured duplicate of every message
    event_dict.pop("color_message", None)
    return event_dict


@contextmanager
def tool_context(tool_name: str) -> Iterator[None]:
    """Tag every log entry emitted inside the block with ``tool_name``."""
    token = tool_name_var.set(tool_name)
    try:
        yield
    finally:
        tool_name_var.reset(token)


def setup_logging(
    log_dir: str | None = None,
    log_file: str = "agentation.jsonl",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    log_level: int | str = logging.INFO,
) -> None:
    """Initialize structlog + stdlib logging with JSON output.

    Call once at startup, before any logging calls. After this both
    structlog.get_logger() and logging.getLogger() produce JSON lines
    with correlation context.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _lowercase_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        _drop_color_message,
        _inject_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )

    # Console handler: stderr only
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    file_handler = None
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, log_file),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
        except OSError as e:
            # Keep serving with stderr logging only
            print(f"agentation: file logging disabled: {e}", file=sys.stderr)
            file_handler = None

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    root.addHandler(console_handler)
    if file_handler:
        root.addHandler(file_handler)

    # Quiet noisy third-party loggers
    for noisy in ("httpcore", "httpx", "asyncio", "uvicorn.access", "mcp"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
