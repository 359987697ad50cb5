"""
Annotations REST API.

- GET   /annotations/{annotation_id}  one annotation with its thread
- PATCH /annotations/{annotation_id}  partial update from the reviewer
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from agentation.core.errors import NotFoundError
from agentation.core.payloads import parse_json_object
from agentation.routers.deps import get_store
from agentation.services.annotation_store import AnnotationStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Annotations"])


@router.get("/annotations/{annotation_id}")
async def get_annotation(annotation_id: str, store: AnnotationStore = Depends(get_store)) -> Dict[str, Any]:
    annotation = store.get_annotation(annotation_id)
    if annotation is None:
        raise NotFoundError("AGT-ANN-001", context={"annotation.id": annotation_id})
    return annotation.to_wire()


@router.patch("/annotations/{annotation_id}")
async def update_annotation(
    annotation_id: str,
    request: Request,
    store: AnnotationStore = Depends(get_store),
) -> Dict[str, Any]:
    """Merge the body into the annotation. Terminal statuses default to resolvedBy=human."""
    payload = parse_json_object(await request.body())
    annotation = store.update_annotation(annotation_id, payload, resolved_by="human")
    if annotation is None:
        raise NotFoundError("AGT-ANN-001", context={"annotation.id": annotation_id})
    return annotation.to_wire()
