# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Starlette ASGI application for the search MCP server.

Two transports share one ToolRouter:

- SSE: ``GET /sse`` opens a streaming session; the client POSTs JSON-RPC
  messages to ``/sse/{session_id}`` and receives responses on the stream.
- Direct: ``POST /tools/{tool_name}`` runs one tool and answers inline.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from sse_starlette.sse import EventSourceResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from ..core.exceptions import ArgumentError, ServerShuttingDown, SessionNotFound
from ..core.logging import correlation_context
from ..providers.base import ContentExtractor, SearchProvider
from ..providers.extractor import HtmlContentExtractor
from ..providers.google import GoogleSearchService
from ..tools.arguments import parse_arguments
from ..tools.definitions import SEARCH_TOOLS, TOOL_NAMES
from ..tools.router import ToolRouter
from .config import ServerSettings, get_settings
from .errors import (
    argument_error,
    internal_error,
    invalid_json_error,
    service_unavailable_error,
    session_not_found_error,
    unknown_tool_error,
)
from .metrics import MetricsMiddleware, get_metrics_collector, metrics_endpoint
from .rpc import PROTOCOL_VERSION, RpcDispatcher
from .sessions import SessionManager

logger = logging.getLogger(__name__)

SSE_PING_SECONDS = 15


async def _read_json(request: Request, empty: Any = None) -> Any:
    """Decode the request body; raises ValueError on malformed JSON."""
    body = await request.body()
    if not body.strip():
        if empty is None:
            raise ValueError("Empty request body")
        return empty
    return json.loads(body)


async def health_endpoint(request: Request) -> JSONResponse:
    """Health check endpoint."""
    timestamp = datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return JSONResponse(
        {
            "status": "healthy",
            "timestamp": timestamp,
            "sessions": request.app.state.sessions.active_count,
        }
    )


async def info_endpoint(request: Request) -> JSONResponse:
    """Server info endpoint."""
    settings: ServerSettings = request.app.state.settings

    return JSONResponse(
        {
            "server": settings.server_name,
            "version": settings.server_version,
            "protocol": "mcp",
            "protocolVersion": PROTOCOL_VERSION,
            "transports": ["sse", "http"],
            "tools": [tool.name for tool in SEARCH_TOOLS],
            "endpoints": {
                "sse": settings.sse_path,
                "messages": f"{settings.sse_path}/{{session_id}}",
                "tools": "/tools/{tool_name}",
                "health": "/health",
                "info": "/",
                "metrics": "/metrics",
            },
        }
    )


class SSEEndpoint:
    """ASGI endpoint that holds one streaming session open.

    The session lives exactly as long as the response: it is closed when
    the client disconnects, the stream fails, or the server shuts down.
    """

    def __init__(self, sessions: SessionManager) -> None:
        self.sessions = sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            async with self.sessions.connect() as session:
                logger.info(f"Client connected, expecting POSTs to {session.post_endpoint_path}")
                response = EventSourceResponse(self.sessions.stream_events(session), ping=SSE_PING_SECONDS)
                await response(scope, receive, send)
        except ServerShuttingDown as e:
            await service_unavailable_error(e.message)(scope, receive, send)
            return
        logger.info(f"Client disconnected from SSE, cleaned up session {session.session_id}")


async def session_message_endpoint(request: Request) -> JSONResponse:
    """Accept a JSON-RPC message for an open streaming session.

    The response to the message is delivered on the session's stream; the
    POST itself only acknowledges receipt.
    """
    session_id = request.path_params["session_id"]
    sessions: SessionManager = request.app.state.sessions

    try:
        payload = await _read_json(request)
    except ValueError as e:
        logger.warning(f"Bad JSON posted to session {session_id}: {e}")
        return invalid_json_error()

    try:
        await sessions.route_message(session_id, payload)
    except SessionNotFound:
        logger.warning(f"No active session found for sessionId: {session_id}")
        return session_not_found_error(session_id)
    except Exception:  # Intentionally broad: a failed message never ends the session
        logger.exception(f"Error routing message for session {session_id}")
        return internal_error("Failed to process message")

    return JSONResponse({"success": True, "sessionId": session_id}, status_code=202)


async def tool_endpoint(request: Request) -> JSONResponse:
    """Direct tool call: the request body is the tool's argument object."""
    tool_name = request.path_params["tool_name"]
    router: ToolRouter = request.app.state.router

    if tool_name not in TOOL_NAMES:
        return unknown_tool_error(tool_name)

    try:
        arguments = await _read_json(request, empty={})
    except ValueError:
        return invalid_json_error()

    with correlation_context():
        try:
            tool_request = parse_arguments(tool_name, arguments)
        except ArgumentError as e:
            return argument_error(e)

        try:
            result = await router.execute(tool_name, tool_request)
        except Exception:  # Intentionally broad: top-level direct call handler
            logger.exception(f"Tool execution error: {tool_name}")
            return internal_error("Tool execution failed")

    return JSONResponse(result.to_dict())


@asynccontextmanager
async def lifespan(app: Starlette):
    """Application lifespan handler."""
    settings: ServerSettings = app.state.settings
    logger.info(f"Starting {settings.server_name} MCP server on {settings.host}:{settings.port}")
    logger.info(f"SSE endpoint: {settings.base_url}{settings.sse_path}")
    logger.info(f"Direct API: {settings.base_url}/tools/{{toolName}}")

    yield

    closed = app.state.sessions.shutdown()
    logger.info(f"MCP server shutting down ({closed} sessions closed)")


def create_app(
    settings: ServerSettings | None = None,
    search_provider: SearchProvider | None = None,
    content_extractor: ContentExtractor | None = None,
) -> Starlette:
    """Create the Starlette ASGI application.

    Collaborators default to the Google Custom Search client and the HTML
    extractor; tests pass fakes.
    """
    settings = settings or get_settings()

    router = ToolRouter(
        search_provider if search_provider is not None else GoogleSearchService(settings),
        content_extractor if content_extractor is not None else HtmlContentExtractor(settings),
        timeout=settings.tool_timeout,
        max_batch_urls=settings.max_batch_urls,
        metrics=get_metrics_collector(),
    )
    dispatcher = RpcDispatcher(router, settings)
    sessions = SessionManager(
        dispatcher.handle_message,
        sse_path=settings.sse_path,
        max_buffered_messages=settings.max_buffered_messages,
    )

    routes = [
        Route("/", info_endpoint, methods=["GET"]),
        Route("/health", health_endpoint, methods=["GET"]),
        Route(settings.sse_path, SSEEndpoint(sessions), methods=["GET"]),
        Route(f"{settings.sse_path}/{{session_id}}", session_message_endpoint, methods=["POST"]),
        Route("/tools/{tool_name}", tool_endpoint, methods=["POST"]),
        # Prometheus metrics endpoint
        Route("/metrics", metrics_endpoint, methods=["GET"]),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        ),
        Middleware(MetricsMiddleware),
    ]

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.settings = settings
    app.state.router = router
    app.state.dispatcher = dispatcher
    app.state.sessions = sessions
    return app
