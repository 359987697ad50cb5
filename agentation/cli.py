"""
Command line entry point.

    agentation server [--port N] [--host H] [--mcp-only]
    agentation help
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from agentation.config import settings as default_settings
from agentation.core.structured_logging import APP_VERSION, setup_logging
from agentation.server import serve


def port_number(value: str) -> int:
    """argparse type for a TCP port in 1..65535."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 1 and 65535, got {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentation",
        description="Relay browser annotations to a coding agent over HTTP and MCP.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    commands = parser.add_subparsers(dest="command")

    server = commands.add_parser("server", help="Run the HTTP API and the stdio MCP server")
    server.add_argument(
        "--port", type=port_number, default=default_settings.port,
        help=f"HTTP port (default: {default_settings.port})",
    )
    server.add_argument(
        "--host", default=default_settings.host,
        help=f"HTTP bind host (default: {default_settings.host})",
    )
    server.add_argument(
        "--mcp-only", action="store_true", default=default_settings.mcp_only,
        help="Run only the MCP server, without the HTTP API",
    )

    commands.add_parser("help", help="Show this help")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "server":
        parser.print_help(sys.stderr)
        return 0

    settings = default_settings.model_copy(
        update={"port": args.port, "host": args.host, "mcp_only": args.mcp_only},
    )
    setup_logging(
        log_dir=settings.log_dir,
        log_file=settings.log_file,
        log_level=settings.log_level.upper(),
    )

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
