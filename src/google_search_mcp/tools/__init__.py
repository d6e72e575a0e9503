"""Tool layer: catalog, argument parsing, formatting and routing."""

from .arguments import (
    BatchExtractRequest,
    ExtractRequest,
    SearchRequest,
    ToolRequest,
    parse_arguments,
)
from .definitions import (
    EXTRACT_MULTIPLE_WEBPAGES,
    EXTRACT_WEBPAGE_CONTENT,
    GOOGLE_SEARCH,
    MAX_BATCH_URLS,
    SEARCH_TOOLS,
    TOOL_NAMES,
    get_tool,
    list_tools,
)
from .results import ToolResult
from .router import ToolRouter

__all__ = [
    "BatchExtractRequest",
    "EXTRACT_MULTIPLE_WEBPAGES",
    "EXTRACT_WEBPAGE_CONTENT",
    "ExtractRequest",
    "GOOGLE_SEARCH",
    "MAX_BATCH_URLS",
    "SEARCH_TOOLS",
    "SearchRequest",
    "TOOL_NAMES",
    "ToolRequest",
    "ToolResult",
    "ToolRouter",
    "get_tool",
    "list_tools",
    "parse_arguments",
]
