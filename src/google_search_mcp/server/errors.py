# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""REST error bodies for the HTTP routes.

Every non-2xx answer from the session and direct-call routes has the same
shape::

    {"success": false, "error": {"code": "NOT_FOUND_SESSION", "message": "..."}}

JSON-RPC errors are not built here; they travel inside the event stream
(see rpc.py).
"""

from __future__ import annotations

import logging
import os
import sys
import traceback
import uuid
from typing import Any

from starlette.responses import JSONResponse

from ..core.exceptions import ArgumentError

logger = logging.getLogger(__name__)

# GOOGLE_SEARCH_MCP_DEBUG=1 adds exception details to 500 bodies
_DEBUG = os.environ.get("GOOGLE_SEARCH_MCP_DEBUG", "0") == "1"

# 400
VALIDATION_MISSING_FIELD = "VALIDATION_MISSING_FIELD"
VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
VALIDATION_INVALID_VALUE = "VALIDATION_INVALID_VALUE"
VALIDATION_INVALID_JSON = "VALIDATION_INVALID_JSON"

# 404
NOT_FOUND_SESSION = "NOT_FOUND_SESSION"
NOT_FOUND_TOOL = "NOT_FOUND_TOOL"

# 500 / 503
INTERNAL_ERROR = "INTERNAL_ERROR"
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


def error_response(code: str, message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    """Build the standard error body; ``extra`` keys go inside ``error``."""
    return JSONResponse(
        {"success": False, "error": {"code": code, "message": message, **extra}},
        status_code=status_code,
    )


def validation_error(message: str, code: str = VALIDATION_INVALID_VALUE) -> JSONResponse:
    return error_response(code, message, status_code=400)


def argument_error(error: ArgumentError) -> JSONResponse:
    """400 for tool arguments that could not be parsed.

    An absent required field is reported as missing; a field that is
    present with the wrong shape (``urls`` not a list) as a format error.
    """
    if error.field and error.value is None:
        code = VALIDATION_MISSING_FIELD
    elif error.field:
        code = VALIDATION_INVALID_FORMAT
    else:
        code = VALIDATION_INVALID_VALUE
    return validation_error(error.message, code=code)


def invalid_json_error() -> JSONResponse:
    return validation_error("Invalid JSON body", code=VALIDATION_INVALID_JSON)


def session_not_found_error(session_id: str) -> JSONResponse:
    """404 for a POST addressed to a session that is not open."""
    return error_response(NOT_FOUND_SESSION, f"No active session found for sessionId: {session_id}", status_code=404)


def unknown_tool_error(tool_name: str) -> JSONResponse:
    """404 for a direct call to a tool outside the catalog."""
    return error_response(NOT_FOUND_TOOL, f"Unknown tool: {tool_name}", status_code=404)


def service_unavailable_error(message: str) -> JSONResponse:
    return error_response(SERVICE_UNAVAILABLE, message, status_code=503)


def internal_error(message: str = "Internal server error", exc: BaseException | None = None) -> JSONResponse:
    """500 with a ``request_id`` that also appears in the server log.

    Args:
        message: Client-facing message
        exc: Exception to report; defaults to the one being handled, if any.
            Its type and text are only included in the body in debug mode.
    """
    request_id = uuid.uuid4().hex[:12]
    details: dict[str, Any] = {"request_id": request_id}

    exc = exc if exc is not None else sys.exc_info()[1]
    if exc is not None:
        logger.error("request_id=%s %s: %s", request_id, type(exc).__name__, exc)
        if _DEBUG:
            details["exception"] = type(exc).__name__
            details["detail"] = str(exc)
            details["traceback"] = traceback.format_exception_only(type(exc), exc)[0].strip()

    return error_response(INTERNAL_ERROR, message, status_code=500, **details)
