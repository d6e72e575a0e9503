"""Core configuration - centralized config for the google_search_mcp package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from google_search_mcp.core.config import get_config
    config = get_config()

    # Access settings
    api_key = config.google_api_key
    log_level = config.log_level
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoreSettings(BaseSettings):
    """Core configuration settings.

    Backend credentials use the conventional GOOGLE_ names; everything else
    uses the GOOGLE_SEARCH_MCP_ prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # SEARCH BACKEND SETTINGS
    # ==========================================================================

    google_api_key: str = Field(
        default="",
        description="API key for the Google Custom Search JSON API",
        validation_alias="GOOGLE_API_KEY",
    )
    google_search_engine_id: str = Field(
        default="",
        description="Programmable Search Engine id (cx)",
        validation_alias="GOOGLE_SEARCH_ENGINE_ID",
    )

    # ==========================================================================
    # HTTP CLIENT SETTINGS
    # ==========================================================================

    http_timeout: float = Field(
        default=15.0,
        description="Per-request timeout in seconds for outbound HTTP calls",
        validation_alias="GOOGLE_SEARCH_MCP_HTTP_TIMEOUT",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; google-search-mcp/1.0; +https://modelcontextprotocol.io)",
        description="User-Agent header sent when fetching pages",
        validation_alias="GOOGLE_SEARCH_MCP_USER_AGENT",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="GOOGLE_SEARCH_MCP_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="GOOGLE_SEARCH_MCP_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="GOOGLE_SEARCH_MCP_LOG_FILE",
    )

    # ==========================================================================
    # CACHE SETTINGS
    # ==========================================================================

    cache_max_size: int = Field(
        default=256,
        description="Maximum number of cached search responses",
        validation_alias="GOOGLE_SEARCH_MCP_CACHE_MAX_SIZE",
    )
    cache_ttl_seconds: float = Field(
        default=300.0,
        description="Seconds a cached search response stays fresh",
        validation_alias="GOOGLE_SEARCH_MCP_CACHE_TTL_SECONDS",
    )

    @property
    def has_search_credentials(self) -> bool:
        """Whether both Custom Search credentials are configured."""
        return bool(self.google_api_key and self.google_search_engine_id)


# Global config instance - lazy loaded
_config: CoreSettings | None = None


def get_config() -> CoreSettings:
    """Get the global core settings instance."""
    global _config
    if _config is None:
        _config = CoreSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
