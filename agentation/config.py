"""
Agentation Configuration
========================

PURPOSE:
    Pydantic-Settings based configuration for the annotation server.
    All settings can be overridden via environment variables (AGENTATION_ prefix)
    or a local .env file. CLI flags override both.
"""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4747


class Settings(BaseSettings):
    """Runtime settings for the HTTP + MCP annotation server."""

    app_name: str = "agentation"

    # HTTP adapter (browser reviewer UI)
    host: str = "127.0.0.1"  # Loopback only by default
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)

    # Run the MCP tool adapter alone, without the HTTP listener
    mcp_only: bool = False

    # Logging: stderr always, rotating JSONL file only when log_dir is set
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    log_file: str = "agentation.jsonl"

    class Config:
        env_file = ".env"
        env_prefix = "AGENTATION_"


settings = Settings()
