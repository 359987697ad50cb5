"""
MCP Server: stdio binding for the annotation tools.

Publishes the AnnotationToolAdapter catalogue through the low-level server
of the `mcp` SDK. Tool errors are raised from the call handler so the SDK
answers with isError=true and our JSON error text unchanged.

stdout carries the protocol; all logging goes to stderr.
"""

import logging
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from agentation.core.structured_logging import APP_VERSION, SERVICE_NAME
from agentation.services.tool_adapter import AnnotationToolAdapter

logger = logging.getLogger(__name__)


class ToolCallError(Exception):
    """Carries the text of an isError tool result out of the call handler."""


def build_mcp_server(adapter: AnnotationToolAdapter) -> Server:
    server = Server(SERVICE_NAME, version=APP_VERSION)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=tool["name"],
                description=tool["description"],
                inputSchema=tool["inputSchema"],
            )
            for tool in adapter.list_tools()
        ]

    # Arguments are checked by the adapter so error text stays in our format
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        result = adapter.call_tool(name, arguments)
        if result.is_error:
            raise ToolCallError(result.text)
        return [types.TextContent(type="text", text=block.text) for block in result.content]

    return server


async def run_stdio(adapter: AnnotationToolAdapter) -> None:
    """Serve the tools over stdin/stdout until the client disconnects."""
    server = build_mcp_server(adapter)
    logger.info("mcp_server_started", extra={"mcp.transport": "stdio", "mcp.tools": len(adapter.list_tools())})
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("mcp_server_stopped")
