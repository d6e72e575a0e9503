"""Core primitives shared by the server and the collaborators."""

from .exceptions import (
    ArgumentError,
    BackendError,
    ConfigException,
    ExtractionError,
    NotFoundError,
    SearchBackendError,
    SearchMCPException,
    ServerShuttingDown,
    SessionNotFound,
    UnknownToolError,
    ValidationException,
)

__all__ = [
    "ArgumentError",
    "BackendError",
    "ConfigException",
    "ExtractionError",
    "NotFoundError",
    "SearchBackendError",
    "SearchMCPException",
    "ServerShuttingDown",
    "SessionNotFound",
    "UnknownToolError",
    "ValidationException",
]
