"""
Process bootstrap: one AnnotationStore, two adapters.

The HTTP API (uvicorn) and the stdio MCP server run on the same asyncio
loop and share the store handle.
"""

import asyncio
import logging
from typing import Optional

import uvicorn

from agentation.config import Settings
from agentation.main import create_app
from agentation.mcp_server import run_stdio
from agentation.services.annotation_store import AnnotationStore
from agentation.services.tool_adapter import AnnotationToolAdapter

logger = logging.getLogger(__name__)


def build_http_server(settings: Settings, store: AnnotationStore) -> uvicorn.Server:
    config = uvicorn.Config(
        create_app(store),
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep our structlog handlers
        access_log=False,
    )
    return uvicorn.Server(config)


async def serve(settings: Settings, store: Optional[AnnotationStore] = None) -> None:
    """Run the MCP server, and the HTTP API unless ``settings.mcp_only``."""
    store = store if store is not None else AnnotationStore()
    adapter = AnnotationToolAdapter(store)

    tasks = [run_stdio(adapter)]
    if settings.mcp_only:
        logger.info("Starting agentation in MCP-only mode")
    else:
        logger.info(
            "Starting agentation",
            extra={"http.host": settings.host, "http.port": settings.port},
        )
        tasks.append(build_http_server(settings, store).serve())

    await asyncio.gather(*tasks)
