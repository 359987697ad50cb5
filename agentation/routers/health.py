"""
Health check endpoint.

- GET /health  cheap: process alive, version, uptime
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from agentation.core.structured_logging import APP_VERSION, SERVICE_NAME, get_uptime_s

router = APIRouter()


@router.get("/health")
async def health_check():
    """Cheap health check, no store access."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": APP_VERSION,
        "uptime_s": round(get_uptime_s(), 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
