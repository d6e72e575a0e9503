# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Command-line entry point: ``google-search-mcp``."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from ..core.logging import configure_logging
from .app import create_app
from .config import ServerSettings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Google search MCP server (SSE and direct HTTP transports)",
        prog="google-search-mcp",
    )
    parser.add_argument("--host", default=None, help="Host to bind to (default: GOOGLE_SEARCH_MCP_HOST or 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to bind to (default: PORT or 3000)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        default=None,
        help="Log level (default: GOOGLE_SEARCH_MCP_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        default=None,
        help="Log format (default: auto-detect from the terminal)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    overrides = {key: value for key, value in (("host", args.host), ("port", args.port)) if value is not None}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format

    try:
        settings = ServerSettings(**overrides)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(level=settings.log_level, json_format=_json_format(settings.log_format), log_file=settings.log_file)

    if not settings.has_search_credentials:
        logger.warning("GOOGLE_API_KEY / GOOGLE_SEARCH_ENGINE_ID not set; google_search calls will fail")

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


def _json_format(log_format: str) -> bool | None:
    value = log_format.lower()
    if value == "json":
        return True
    if value == "text":
        return False
    return None


if __name__ == "__main__":
    sys.exit(main())
