# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Server configuration using pydantic-settings."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import SettingsConfigDict

from ..core.config import CoreSettings
from ..tools.definitions import MAX_BATCH_URLS

logger = logging.getLogger(__name__)


def get_package_version() -> str:
    """Get the package version from installed metadata.

    Returns the version from pyproject.toml when installed,
    or a dev fallback when running from source without install.
    """
    try:
        return version("google-search-mcp")
    except PackageNotFoundError:
        return "0.0.0-dev"


class ServerSettings(CoreSettings):
    """Configuration for the HTTP MCP server.

    Inherits core settings (search credentials, HTTP client, logging, cache)
    and adds transport settings.

    Settings can be configured via environment variables with the
    GOOGLE_SEARCH_MCP_ prefix. The port also honours a bare PORT variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SEARCH_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Host to bind to")  # nosec B104
    port: int = Field(
        default=3000,
        description="Port to bind to",
        validation_alias=AliasChoices("GOOGLE_SEARCH_MCP_PORT", "PORT"),
    )

    # CORS settings
    allowed_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins. ['*'] allows any origin.",
    )

    # Server name for MCP
    server_name: str = Field(default="google-search", description="MCP server name")
    server_version: str = Field(default_factory=get_package_version, description="Server version")

    # Transport settings
    sse_path: str = Field(default="/sse", description="Path of the SSE endpoint; session POSTs go to {sse_path}/{id}")
    max_buffered_messages: int = Field(
        default=64,
        description="Outbound messages buffered per session before senders wait",
    )
    tool_timeout: float = Field(default=30.0, description="Seconds a single collaborator call may take")
    max_batch_urls: int = Field(default=MAX_BATCH_URLS, description="Maximum URLs per batch extraction")

    @field_validator("sse_path")
    @classmethod
    def normalize_sse_path(cls, value: str) -> str:
        path = "/" + value.strip("/")
        if path == "/":
            raise ValueError("sse_path must not be the root path")
        return path

    @field_validator("max_batch_urls")
    @classmethod
    def cap_batch_urls(cls, value: int) -> int:
        if value != MAX_BATCH_URLS:
            logger.warning(f"max_batch_urls is fixed at {MAX_BATCH_URLS}; ignoring {value}")
        return MAX_BATCH_URLS

    @property
    def base_url(self) -> str:
        """Get the base URL for the server."""
        host = "localhost" if self.host in ("0.0.0.0", "::") else self.host  # nosec B104
        return f"http://{host}:{self.port}"


# Global settings instance - lazy loaded
_settings: ServerSettings | None = None


def get_settings() -> ServerSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = ServerSettings()
    return _settings


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    global _settings
    _settings = None
