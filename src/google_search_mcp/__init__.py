# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""google-search-mcp - web search and page extraction tools for AI agents.

Exposes three MCP tools (``google_search``, ``extract_webpage_content``,
``extract_multiple_webpages``) over two transports:

  GET  /sse                 -> long-lived SSE session; first event names the
                               session's POST endpoint
  POST /sse/{session_id}    -> JSON-RPC messages routed to that session
  POST /tools/{tool_name}   -> direct synchronous call, one ToolResult back

Layout:
  core/       settings, logging, exceptions, caching
  providers/  search and extraction collaborators
  tools/      tool catalog, argument parsing, result formatting, routing
  server/     session manager, JSON-RPC dispatch, Starlette app, CLI

CLI entry point: ``google-search-mcp``
"""

__version__ = "1.0.0"
