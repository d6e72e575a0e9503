"""HTTP MCP server for the search tools.

Usage:
    # Start the server
    google-search-mcp --port 3000

    # Or with uvicorn directly
    uvicorn google_search_mcp.server.app:create_app --factory --port 3000
"""

from .app import create_app
from .config import ServerSettings, get_settings
from .sessions import Session, SessionManager, SessionState

__all__ = [
    "ServerSettings",
    "Session",
    "SessionManager",
    "SessionState",
    "create_app",
    "get_settings",
]
