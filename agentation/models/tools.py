"""
Tool Models: argument structs and results for the agent-facing tools.

Each tool has one explicit argument model; arguments are validated against
it before the store is touched. ToolResult mirrors the MCP tools/call
result shape: {"content": [{"type": "text", "text": ...}], "isError": true?}.
"""

from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from agentation.models.annotations import WireModel


# ---------------------------------------------------------------------------
# Argument structs
# ---------------------------------------------------------------------------

class ToolArgs(WireModel):
    """Base for tool arguments; unknown keys are ignored."""


class ListSessionsArgs(ToolArgs):
    pass


class GetSessionArgs(ToolArgs):
    session_id: str = Field(..., min_length=1, description="The session ID to get")


class GetPendingArgs(ToolArgs):
    session_id: str = Field(..., min_length=1, description="The session ID to get pending annotations for")


class AcknowledgeArgs(ToolArgs):
    annotation_id: str = Field(..., min_length=1, description="The annotation ID to acknowledge")


class ResolveArgs(ToolArgs):
    annotation_id: str = Field(..., min_length=1, description="The annotation ID to resolve")
    summary: Optional[str] = Field(None, description="Optional summary of how it was resolved")


class DismissArgs(ToolArgs):
    annotation_id: str = Field(..., min_length=1, description="The annotation ID to dismiss")
    reason: str = Field(..., min_length=1, description="Reason for dismissing this annotation")


class ReplyArgs(ToolArgs):
    annotation_id: str = Field(..., min_length=1, description="The annotation ID to reply to")
    message: str = Field(..., min_length=1, description="The reply message")


def input_schema(args_model: Type[ToolArgs]) -> Dict[str, Any]:
    """Flat JSON schema for a tool's arguments, keyed by wire (camelCase) names."""
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for name, field in args_model.model_fields.items():
        key = field.alias or to_camel(name)
        properties[key] = {"type": "string", "description": field.description or ""}
        if field.is_required():
            required.append(key)
    return {"type": "object", "properties": properties, "required": required}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(WireModel):
    """Outcome of one tool call. Returned, never raised."""

    content: List[TextContent]
    is_error: Optional[bool] = None

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content)
