"""
Error code system.

AgentationError is the base exception for all structured errors.
Raise it (or one of the kinds below) with an error code from the registry,
and the HTTP error handler / tool adapter will produce a structured response.

Usage:
    from agentation.core.errors import NotFoundError
    raise NotFoundError("AGT-SES-001", message=f"Session not found: {session_id}")
"""

from __future__ import annotations

import re

CODE_PATTERN = re.compile(r"^AGT-[A-Z]{2,6}-\d{3}$")


class AgentationError(Exception):
    """Structured application error tied to the error registry.

    Args:
        code: Registry error code, e.g. "AGT-SES-001".
        message: Caller-safe message. Falls back to the registry safe_message.
        detail: Internal-only detail message (never exposed to callers).
        context: Arbitrary key-value context for structured logging.
    """

    default_code = "AGT-SYS-001"
    kind = "internal_error"

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        detail: str | None = None,
        context: dict | None = None,
    ) -> None:
        code = code or self.default_code
        if not CODE_PATTERN.match(code):
            raise ValueError(f"Invalid error code format: {code!r}")
        self.code = code
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(f"{code}: {message or detail}" if (message or detail) else code)


class ValidationError(AgentationError):
    """Missing or malformed required input."""

    default_code = "AGT-API-001"
    kind = "validation_error"


class NotFoundError(AgentationError):
    """A referenced session or annotation does not exist."""

    default_code = "AGT-API-404"
    kind = "not_found"


class InternalError(AgentationError):
    """Unexpected failure. Never carries caller-visible detail."""

    default_code = "AGT-SYS-001"
    kind = "internal_error"
