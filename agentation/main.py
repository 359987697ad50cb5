"""
HTTP application factory for the reviewer-facing API.

create_app() wires the routers, error handlers and middleware around one
AnnotationStore. The same store instance is handed to the MCP tools by
agentation.server, so both surfaces see the same state.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentation.core.errors import AgentationError
from agentation.core.errors.middleware import agentation_error_handler, http_exception_handler
from agentation.core.errors.registry import error_registry
from agentation.core.log_middleware import CorrelationMiddleware, CorsHeadersMiddleware
from agentation.core.structured_logging import APP_VERSION
from agentation.routers import annotations, health, sessions
from agentation.services.annotation_store import AnnotationStore

logger = logging.getLogger(__name__)

API_TITLE = "agentation"
API_DESCRIPTION = "Relay annotations from a browser reviewer to a coding agent."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the error registry on startup."""
    logger.info("Starting agentation HTTP API v%s", APP_VERSION)
    error_registry.load()
    yield
    logger.info("agentation HTTP API stopped")


def create_app(store: Optional[AnnotationStore] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else AnnotationStore()

    app.add_exception_handler(AgentationError, agentation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Correlation ids + catch-all 500; must sit inside the CORS layer
    app.add_middleware(CorrelationMiddleware)
    # Added last so it is outermost: preflights never reach routing
    app.add_middleware(CorsHeadersMiddleware)

    app.include_router(health.router, tags=["health"])
    app.include_router(sessions.router)
    app.include_router(annotations.router)

    return app
