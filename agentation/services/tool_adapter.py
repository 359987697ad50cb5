"""
Annotation Tool Adapter: the agent-facing tool catalogue.

Exposes a fixed set of named tools, each with an explicit argument struct,
and dispatches them into the shared AnnotationStore. Used by the MCP
binding (agentation.mcp_server) but has no dependency on it.

Contract:
- call_tool() never raises. Unknown tools, bad arguments, absent entities
  and unexpected failures all come back as ToolResult(is_error=True) whose
  text is a JSON error object.
- Arguments are validated before the store is touched.
- Internal failure details stay in the logs.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import ValidationError as PydanticValidationError

from agentation.core.errors import AgentationError, InternalError, NotFoundError, ValidationError
from agentation.core.errors.registry import error_registry
from agentation.core.payloads import missing_fields, required_fields_message
from agentation.core.structured_logging import tool_context
from agentation.models.annotations import Annotation
from agentation.models.tools import (
    AcknowledgeArgs,
    DismissArgs,
    GetPendingArgs,
    GetSessionArgs,
    ListSessionsArgs,
    ReplyArgs,
    ResolveArgs,
    TextContent,
    ToolArgs,
    ToolResult,
    input_schema,
)
from agentation.services.annotation_store import AnnotationStore

logger = logging.getLogger(__name__)

TOOL_PREFIX = "agentation_"

INTERNAL_ERROR_MESSAGE = "An internal error occurred. Check agentation logs for details."

# Fields an agent needs to act on a pending annotation
PENDING_SUMMARY_KEYS = (
    "id", "comment", "element", "elementPath", "url", "intent",
    "severity", "timestamp", "nearbyText", "reactComponents",
)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: Type[ToolArgs]

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": input_schema(self.args_model),
        }


TOOLS: List[ToolSpec] = [
    ToolSpec(
        name=f"{TOOL_PREFIX}list_sessions",
        description="List all annotation sessions",
        args_model=ListSessionsArgs,
    ),
    ToolSpec(
        name=f"{TOOL_PREFIX}get_session",
        description="Get a session with all its annotations",
        args_model=GetSessionArgs,
    ),
    ToolSpec(
        name=f"{TOOL_PREFIX}get_pending",
        description=(
            "Get all pending (unacknowledged) annotations for a session. "
            "Use this to see what feedback the human has given that needs attention."
        ),
        args_model=GetPendingArgs,
    ),
    ToolSpec(
        name=f"{TOOL_PREFIX}acknowledge",
        description=(
            "Mark an annotation as acknowledged. Use this to let the human know "
            "you've seen their feedback and will address it."
        ),
        args_model=AcknowledgeArgs,
    ),
    ToolSpec(
        name=f"{TOOL_PREFIX}resolve",
        description=(
            "Mark an annotation as resolved. Use this after you've addressed the "
            "feedback. Optionally include a summary of what you did."
        ),
        args_model=ResolveArgs,
    ),
    ToolSpec(
        name=f"{TOOL_PREFIX}dismiss",
        description=(
            "Dismiss an annotation. Use this when you've decided not to address "
            "the feedback, with a reason why."
        ),
        args_model=DismissArgs,
    ),
    ToolSpec(
        name=f"{TOOL_PREFIX}reply",
        description=(
            "Add a reply to an annotation's thread. Use this to ask clarifying "
            "questions or provide updates to the human."
        ),
        args_model=ReplyArgs,
    ),
]


def _format_error(code: str, kind: str, message: str, details: Optional[Dict[str, Any]] = None) -> str:
    """Format a structured error as the JSON text of an isError result."""
    return json.dumps({
        "error": {
            "code": code,
            "kind": kind,
            "message": message,
            "details": details or {},
        },
    }, indent=2)


def _success(data: Any) -> ToolResult:
    return ToolResult(content=[TextContent(text=json.dumps(data, indent=2))])


def _error(exc: AgentationError) -> ToolResult:
    if isinstance(exc, InternalError):
        message = INTERNAL_ERROR_MESSAGE
    else:
        entry = error_registry.get(exc.code)
        message = exc.message or (entry.safe_message if entry else exc.code)
    details = dict(exc.context)
    return ToolResult(
        content=[TextContent(text=_format_error(exc.code, exc.kind, message, details))],
        is_error=True,
    )


def _annotation_not_found(annotation_id: str) -> NotFoundError:
    return NotFoundError(
        "AGT-ANN-001",
        message=f"Annotation not found: {annotation_id}",
        context={"annotationId": annotation_id},
    )


class AnnotationToolAdapter:
    """Dispatch named tool calls into an AnnotationStore."""

    def __init__(self, store: AnnotationStore) -> None:
        self.store = store
        self._specs: Dict[str, ToolSpec] = {spec.name: spec for spec in TOOLS}
        self._handlers: Dict[str, Callable[[Any], Any]] = {
            f"{TOOL_PREFIX}list_sessions": self._list_sessions,
            f"{TOOL_PREFIX}get_session": self._get_session,
            f"{TOOL_PREFIX}get_pending": self._get_pending,
            f"{TOOL_PREFIX}acknowledge": self._acknowledge,
            f"{TOOL_PREFIX}resolve": self._resolve,
            f"{TOOL_PREFIX}dismiss": self._dismiss,
            f"{TOOL_PREFIX}reply": self._reply,
        }

    def list_tools(self) -> List[Dict[str, Any]]:
        """The tool catalogue, as advertised to the agent runtime."""
        return [spec.describe() for spec in TOOLS]

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Validate arguments, run the tool, and wrap the outcome. Never raises."""
        with tool_context(name):
            start = time.perf_counter()
            result = self._dispatch(name, arguments)
            logger.info(
                "tool_call_completed",
                extra={
                    "tool.name": name,
                    "tool.is_error": bool(result.is_error),
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
        return result

    def _dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> ToolResult:
        spec = self._specs.get(name)
        if spec is None:
            return _error(ValidationError("AGT-TOOL-001", message=f"Unknown tool: {name}"))

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return _error(ValidationError("AGT-TOOL-002", message="arguments must be an object"))

        try:
            args = spec.args_model.model_validate(arguments)
        except PydanticValidationError as e:
            missing = missing_fields(e)
            if missing and len(missing) == e.error_count():
                message = required_fields_message(missing)
            else:
                message = f"Invalid arguments for {name}"
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            return _error(ValidationError("AGT-TOOL-002", message=message, context={"fields": fields}))

        try:
            return _success(self._handlers[name](args))
        except AgentationError as e:
            return _error(e)
        except Exception:
            logger.exception("Unexpected error in %s", name)
            return _error(InternalError())

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def _list_sessions(self, args: ListSessionsArgs) -> Dict[str, Any]:
        sessions = []
        for session in self.store.list_sessions():
            wire = session.to_wire()
            sessions.append({key: wire[key] for key in ("id", "url", "status", "createdAt")})
        return {"sessions": sessions}

    def _get_session(self, args: GetSessionArgs) -> Dict[str, Any]:
        session = self.store.get_session_with_annotations(args.session_id)
        if session is None:
            raise NotFoundError(
                "AGT-SES-001",
                message=f"Session not found: {args.session_id}",
                context={"sessionId": args.session_id},
            )
        return session.to_wire()

    def _get_pending(self, args: GetPendingArgs) -> Dict[str, Any]:
        pending = self.store.get_pending_annotations(args.session_id)
        return {
            "count": len(pending),
            "annotations": [_pending_summary(a) for a in pending],
        }

    def _acknowledge(self, args: AcknowledgeArgs) -> Dict[str, Any]:
        if self.store.update_annotation_status(args.annotation_id, "acknowledged") is None:
            raise _annotation_not_found(args.annotation_id)
        return {"acknowledged": True, "annotationId": args.annotation_id}

    def _resolve(self, args: ResolveArgs) -> Dict[str, Any]:
        note = f"Resolved: {args.summary}" if args.summary else None
        if self.store.update_annotation_status(args.annotation_id, "resolved", "agent", note=note) is None:
            raise _annotation_not_found(args.annotation_id)
        result: Dict[str, Any] = {"resolved": True, "annotationId": args.annotation_id}
        if args.summary is not None:
            result["summary"] = args.summary
        return result

    def _dismiss(self, args: DismissArgs) -> Dict[str, Any]:
        note = f"Dismissed: {args.reason}"
        if self.store.update_annotation_status(args.annotation_id, "dismissed", "agent", note=note) is None:
            raise _annotation_not_found(args.annotation_id)
        return {"dismissed": True, "annotationId": args.annotation_id, "reason": args.reason}

    def _reply(self, args: ReplyArgs) -> Dict[str, Any]:
        if self.store.add_thread_message(args.annotation_id, "agent", args.message) is None:
            raise _annotation_not_found(args.annotation_id)
        return {"replied": True, "annotationId": args.annotation_id, "message": args.message}


def _pending_summary(annotation: Annotation) -> Dict[str, Any]:
    wire = annotation.to_wire()
    return {key: wire[key] for key in PENDING_SUMMARY_KEYS if key in wire}
