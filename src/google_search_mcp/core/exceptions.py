# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Exceptions raised inside the search server.

Transports map them to wire errors: ArgumentError becomes a 400 on the
direct route or an error result over JSON-RPC, SessionNotFound a 404, and
BackendError subclasses an error result carrying the backend's message.
"""

from __future__ import annotations

from typing import Any


class SearchMCPException(Exception):  # noqa: N818
    """Root of the package's exceptions: a message plus structured details."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message, "details": self.details}


class ValidationException(SearchMCPException):
    """Input that cannot be used as given."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ArgumentError(ValidationException):
    """Tool call arguments could not be normalized into a request.

    Raised for a missing required field, a ``urls`` value that is not a
    list, or an argument payload that is not an object.
    """

    def __init__(self, tool_name: str, message: str, field: str | None = None, value: Any = None):
        super().__init__(message, field=field, value=value)
        self.details["tool"] = tool_name
        self.tool_name = tool_name


class UnknownToolError(ArgumentError):
    def __init__(self, tool_name: str):
        super().__init__(tool_name, f"Unknown tool: {tool_name}")


class ConfigException(SearchMCPException):
    """A collaborator was called without the settings it needs.

    ``missing_vars`` names the environment variables to set.
    """

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        self.missing_vars = list(missing_vars or [])
        super().__init__(message, {"missing_vars": self.missing_vars} if self.missing_vars else None)


class NotFoundError(SearchMCPException):
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class SessionNotFound(NotFoundError):
    """No open streaming session is registered under the given id.

    Raised for ids that never existed and for ids whose session has already
    been closed; callers cannot tell the two apart.
    """

    def __init__(self, session_id: str):
        super().__init__("Session", session_id)
        self.message = f"No active session found for sessionId: {session_id}"
        self.session_id = session_id


class ServerShuttingDown(SearchMCPException):
    """The server has begun shutting down and accepts no new sessions."""

    def __init__(self) -> None:
        super().__init__("Server is shutting down")


class BackendError(SearchMCPException):
    """An outbound call failed: the search API or a page fetch.

    ``status`` is the upstream HTTP status when there was one.
    """

    def __init__(self, message: str, status: int | None = None, details: dict | None = None):
        details = dict(details or {})
        if status is not None:
            details["status"] = status
        super().__init__(message, details)
        self.status = status


class SearchBackendError(BackendError):
    """The search provider failed to answer a query."""


class ExtractionError(BackendError):
    """A web page could not be fetched or converted."""

    def __init__(self, url: str, message: str, status: int | None = None):
        super().__init__(message, status=status, details={"url": url})
        self.url = url
