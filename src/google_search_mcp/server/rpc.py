"""JSON-RPC 2.0 dispatch for the MCP method set.

The streaming transport hands every inbound payload to
RpcDispatcher.handle_message, which returns the response object (or list
of responses for a batch), or None when the payload held only
notifications.
"""

from __future__ import annotations

import logging
from typing import Any

from ..tools.definitions import TOOL_NAMES, get_tool_reference, list_tools
from ..tools.router import ToolRouter
from .config import ServerSettings, get_settings

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Methods that only acknowledge; their result is an empty object
_ACK_METHODS = frozenset({"ping", "initialized", "notifications/initialized"})


class RpcError(Exception):
    """A JSON-RPC error to be returned to the caller as-is."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def error_message(code: int, message: str, request_id: Any = None) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": request_id}


class RpcDispatcher:
    """Route JSON-RPC requests to the MCP method handlers."""

    def __init__(self, router: ToolRouter, settings: ServerSettings | None = None) -> None:
        self.router = router
        self.settings = settings or get_settings()

    async def handle_message(self, payload: Any) -> dict[str, Any] | list[dict[str, Any]] | None:
        """Handle one decoded payload, single request or batch."""
        if not isinstance(payload, list):
            return await self.handle_request(payload)

        if not payload:
            return error_message(INVALID_REQUEST, "Invalid Request: empty batch")
        responses = [response for request in payload if (response := await self.handle_request(request)) is not None]
        return responses or None

    async def handle_request(self, request: Any) -> dict[str, Any] | None:
        """Handle a single request object.

        Returns:
            The response object, or None for a notification. Notifications
            never produce a response, not even an error.
        """
        if not isinstance(request, dict):
            return error_message(INVALID_REQUEST, "Invalid Request: expected an object")

        request_id = request.get("id")
        if request.get("jsonrpc") != "2.0":
            return error_message(INVALID_REQUEST, "Invalid request: missing or wrong jsonrpc version", request_id)

        method = request.get("method")
        if not isinstance(method, str) or not method:
            return error_message(INVALID_REQUEST, "Invalid Request: missing or invalid method", request_id)

        is_notification = "id" not in request
        params = request.get("params")
        try:
            if params is None:
                params = {}
            elif not isinstance(params, dict):
                raise RpcError(INVALID_PARAMS, "Invalid params: expected an object")
            result = await self.dispatch_method(method, params)
        except RpcError as e:
            return None if is_notification else error_message(e.code, e.message, request_id)
        except Exception:  # Intentionally broad: top-level method handler
            logger.exception(f"Error in method {method}")
            return None if is_notification else error_message(INTERNAL_ERROR, "Internal error", request_id)

        return None if is_notification else {"jsonrpc": "2.0", "result": result, "id": request_id}

    async def dispatch_method(self, method: str, params: dict[str, Any]) -> Any:
        """Run one method.

        Raises:
            RpcError: For unknown methods and unusable params
        """
        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": {"name": self.settings.server_name, "version": self.settings.server_version},
                "instructions": get_tool_reference(),
            }

        if method in _ACK_METHODS:
            return {}

        if method == "tools/list":
            return {"tools": list_tools()}

        if method == "tools/call":
            return await self._call_tool(params)

        # Unhandled notifications (cancelled, progress, ...) are dropped
        if method.startswith("notifications/"):
            return {}

        raise RpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise RpcError(INVALID_PARAMS, "Missing tool name")
        if name not in TOOL_NAMES:
            raise RpcError(INVALID_PARAMS, f"Unknown tool: {name}")

        result = await self.router.call_tool(name, params.get("arguments") or {})
        return result.to_dict()
