# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Logging setup for the search server.

Two output shapes: one JSON object per line when stderr is not a terminal
(containers, log shippers) and a colored single-line format otherwise.

While a streaming session's message is being handled, the session id is
the correlation id, so every line logged on its behalf can be grepped
together. Direct tool calls get a fresh id per request.
"""

from __future__ import annotations

import copy
import json
import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("aiohttp", "asyncio", "sse_starlette")


def get_correlation_id() -> str | None:
    return _correlation_id.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block.

    Example:
        with correlation_context(session.session_id):
            logger.info("Routing message")  # carries the session id
    """
    cid = correlation_id or uuid.uuid4().hex
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = get_correlation_id()
        if cid:
            entry["correlation_id"] = cid

        # Warnings and errors say where they came from
        if record.levelno >= logging.WARNING:
            entry["source"] = {"file": record.pathname, "line": record.lineno, "function": record.funcName}

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "extra_data", None)
        if extra is not None:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Terminal formatter: ``time - logger - LEVEL - [cid] message``."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    DIM = "\033[90m"
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{self.RESET}" if self.use_colors and color else text

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers must see the record untouched
        record = copy.copy(record)

        cid = get_correlation_id()
        if cid:
            record.msg = f"{self._paint(f'[{cid[:8]}]', self.DIM)} {record.msg}"
        record.levelname = self._paint(record.levelname, self.LEVEL_COLORS.get(record.levelno, ""))

        return super().format(record)


def _resolve_json_format(log_format: str) -> bool:
    value = log_format.lower()
    if value in ("json", "text"):
        return value == "json"
    return not sys.stderr.isatty()


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Replace the root logger's handlers with the server's.

    Args:
        level: Log level name or number; defaults to GOOGLE_SEARCH_MCP_LOG_LEVEL
        json_format: Force JSON (True) or text (False); None follows
            GOOGLE_SEARCH_MCP_LOG_FORMAT, then whether stderr is a terminal
        log_file: Extra JSON-formatted file handler
    """
    from .config import get_config

    config = get_config()

    level = config.log_level if level is None else level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if json_format is None:
        json_format = _resolve_json_format(config.log_format)
    if log_file is None:
        log_file = config.log_file

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(JSONFormatter() if json_format else StandardFormatter())
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers[:] = handlers

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class ToolCallLogger:
    """Logs tool invocations and outcomes.

    Arguments are sanitized first: values under credential-looking keys
    are redacted and long strings (page text, pasted documents) are cut.
    """

    SENSITIVE_KEYS = frozenset({"password", "secret", "token", "api_key", "apikey", "auth", "credential"})
    MAX_STRING = 500

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("google_search_mcp.tools")

    def log_call(self, tool_name: str, arguments: dict[str, Any], level: int = logging.DEBUG) -> None:
        self.logger.log(
            level,
            f"Tool call: {tool_name}",
            extra={"extra_data": {"tool": tool_name, "arguments": self._sanitize(arguments)}},
        )

    def log_result(
        self,
        tool_name: str,
        success: bool,
        duration_ms: float | None = None,
        level: int = logging.DEBUG,
    ) -> None:
        """Log whether a call produced a normal or an error result."""
        outcome = "success" if success else "failure"
        timing = "" if duration_ms is None else f" ({duration_ms:.1f}ms)"
        self.logger.log(
            level,
            f"Tool result: {tool_name} -> {outcome}{timing}",
            extra={"extra_data": {"tool": tool_name, "success": success, "duration_ms": duration_ms}},
        )

    def _is_sensitive(self, key: Any) -> bool:
        lowered = str(key).lower()
        return any(marker in lowered for marker in self.SENSITIVE_KEYS)

    def _sanitize(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: "[REDACTED]" if self._is_sensitive(key) else self._sanitize(value) for key, value in data.items()}
        if isinstance(data, list | tuple):
            return [self._sanitize(item) for item in data]
        if isinstance(data, str) and len(data) > self.MAX_STRING:
            return data[: self.MAX_STRING] + "..."
        return data


tool_logger = ToolCallLogger()
