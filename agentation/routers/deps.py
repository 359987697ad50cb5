"""FastAPI dependencies shared by the routers."""

from fastapi import Request

from agentation.services.annotation_store import AnnotationStore


def get_store(request: Request) -> AnnotationStore:
    """The process-wide store attached by create_app()."""
    return request.app.state.store
