"""
Annotation Models: sessions, annotations and their threads.

Wire format is camelCase JSON (sessionId, elementPath, createdAt, ...) to
match the browser reviewer UI; Python code uses the snake_case attributes.
Optional fields nobody has set are omitted from the wire form; context
fields sent as null stay null.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SessionStatus = Literal["active", "closed"]
AnnotationStatus = Literal["pending", "acknowledged", "resolved", "dismissed"]
Role = Literal["human", "agent"]

SESSION_STATUSES = ("active", "closed")
ANNOTATION_STATUSES = ("pending", "acknowledged", "resolved", "dismissed")
TERMINAL_STATUSES = ("resolved", "dismissed")
ROLES = ("human", "agent")


class WireModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Store-owned optional fields: left off the wire while they are None
    OMIT_WHEN_NONE: ClassVar[FrozenSet[str]] = frozenset()

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict keyed by alias.

        A declared field that is None is omitted if it was never set, or if
        it is listed in OMIT_WHEN_NONE. Nulls sent by the caller and extra
        keys are kept as sent.
        """
        data = self.model_dump(mode="json", by_alias=True)
        for name, field in type(self).model_fields.items():
            key = field.alias or to_camel(name)
            if key in data and data[key] is None:
                if key in self.OMIT_WHEN_NONE or name not in self.model_fields_set:
                    del data[key]
        return data


def wire_keys(*field_names: str) -> frozenset:
    """Both spellings of the given field names, for filtering raw payloads."""
    return frozenset(field_names) | frozenset(to_camel(name) for name in field_names)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class Session(WireModel):
    """One browser page-visit being annotated."""

    OMIT_WHEN_NONE: ClassVar[FrozenSet[str]] = frozenset({"updatedAt", "projectId"})

    id: str
    url: str
    status: SessionStatus = "active"
    created_at: datetime
    updated_at: Optional[datetime] = None
    project_id: Optional[str] = None


class ThreadMessage(WireModel):
    """One entry of an annotation's append-only conversation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    role: Role
    content: str
    timestamp: int  # epoch milliseconds


class Annotation(WireModel):
    """Structured feedback tied to one DOM element within a session.

    Context fields are opaque: whatever the reviewer UI sends is kept
    verbatim, including keys not declared here.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")
    OMIT_WHEN_NONE: ClassVar[FrozenSet[str]] = frozenset({"updatedAt", "resolvedAt", "resolvedBy"})

    id: str
    session_id: str
    comment: str = Field(..., min_length=1)
    element: str = Field(..., min_length=1)
    element_path: str = Field(..., min_length=1)

    url: Optional[Any] = None
    intent: Optional[Any] = None
    severity: Optional[Any] = None
    timestamp: Optional[Any] = None
    nearby_text: Optional[Any] = None
    react_components: Optional[Any] = None

    status: AnnotationStatus = "pending"
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[Role] = None
    thread: List[ThreadMessage] = Field(default_factory=list)


class SessionWithAnnotations(Session):
    """A session plus every annotation that references it."""

    annotations: List[Annotation] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        data = super().to_wire()
        data["annotations"] = [a.to_wire() for a in self.annotations]
        return data
