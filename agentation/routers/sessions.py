"""
Sessions REST API: used by the browser reviewer UI.

- POST /sessions                          open a session for a page
- GET  /sessions                          list sessions
- GET  /sessions/{session_id}             session with its annotations
- POST /sessions/{session_id}/annotations attach an annotation

Bodies are decoded by hand: malformed input is a 400 with a
field-listing message, never a 422.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from agentation.core.errors import NotFoundError
from agentation.core.payloads import parse_json_object, to_validation_error
from agentation.models.annotations import WireModel
from agentation.routers.deps import get_store
from agentation.services.annotation_store import AnnotationStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sessions"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class CreateSessionRequest(WireModel):
    url: str = Field(..., min_length=1, description="Page under review")
    project_id: Optional[str] = Field(None, description="Optional grouping key")


class AnnotationCreateRequest(WireModel):
    """Required annotation fields; context fields pass through untouched."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    comment: str = Field(..., min_length=1)
    element: str = Field(..., min_length=1)
    element_path: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/sessions", status_code=201)
async def create_session(
    request: Request,
    store: AnnotationStore = Depends(get_store),
) -> Dict[str, Any]:
    payload = parse_json_object(await request.body())
    try:
        body = CreateSessionRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise to_validation_error(e)

    session = store.create_session(body.url, project_id=body.project_id)
    return session.to_wire()


@router.get("/sessions")
async def list_sessions(store: AnnotationStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [session.to_wire() for session in store.list_sessions()]


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, store: AnnotationStore = Depends(get_store)) -> Dict[str, Any]:
    session = store.get_session_with_annotations(session_id)
    if session is None:
        raise NotFoundError("AGT-SES-001", context={"session.id": session_id})
    return session.to_wire()


@router.post("/sessions/{session_id}/annotations", status_code=201)
async def add_annotation(
    session_id: str,
    request: Request,
    store: AnnotationStore = Depends(get_store),
) -> Dict[str, Any]:
    payload = parse_json_object(await request.body())
    try:
        AnnotationCreateRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise to_validation_error(e, context={"session.id": session_id})

    annotation = store.add_annotation(session_id, payload)
    if annotation is None:
        raise NotFoundError("AGT-SES-001", context={"session.id": session_id})
    return annotation.to_wire()
