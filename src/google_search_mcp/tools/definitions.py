"""Tool catalog for the search server.

Static definitions shared by both transports. Descriptions are written for
the calling agent: they say what each tool returns and when to reach for
the next one.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

from mcp.types import Tool

GOOGLE_SEARCH = "google_search"
EXTRACT_WEBPAGE_CONTENT = "extract_webpage_content"
EXTRACT_MULTIPLE_WEBPAGES = "extract_multiple_webpages"

MAX_BATCH_URLS = 5

_FORMAT_PROPERTY = {
    "type": "string",
    "description": 'Output format for the extracted content. Options: "markdown" (default), "html", or "text".',
}

# ============================================================================
# Tool Definitions
# ============================================================================

SEARCH_TOOLS: tuple[Tool, ...] = (
    Tool(
        name=GOOGLE_SEARCH,
        description=(
            "Search Google and return relevant results from the web. This tool finds web pages, "
            "articles, and information on specific topics using Google's search engine. Results "
            "include titles, snippets, and URLs that can be analyzed further using "
            "extract_webpage_content."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "Search query - be specific and use quotes for exact matches. For best results, "
                        "use clear keywords and avoid very long queries."
                    ),
                },
                "num_results": {
                    "type": "number",
                    "description": (
                        "Number of results to return (default: 5, max: 10). Increase for broader "
                        "coverage, decrease for faster response."
                    ),
                },
                "site": {
                    "type": "string",
                    "description": (
                        'Limit search results to a specific website domain (e.g., "wikipedia.org" or "nytimes.com").'
                    ),
                },
                "language": {
                    "type": "string",
                    "description": (
                        'Filter results by language using ISO 639-1 codes (e.g., "en" for English, '
                        '"es" for Spanish, "fr" for French).'
                    ),
                },
                "dateRestrict": {
                    "type": "string",
                    "description": (
                        'Filter results by date using Google\'s date restriction format: "d[number]" for '
                        'past days, "w[number]" for past weeks, "m[number]" for past months, or "y[number]" '
                        'for past years. Example: "m6" for results from the past 6 months.'
                    ),
                },
                "exactTerms": {
                    "type": "string",
                    "description": (
                        "Search for results that contain this exact phrase. This is equivalent to putting "
                        "the terms in quotes in the search query."
                    ),
                },
                "resultType": {
                    "type": "string",
                    "description": (
                        'Specify the type of results to return. Options include "image" (or "images"), '
                        '"news", and "video" (or "videos"). Default is general web results.'
                    ),
                },
                "page": {
                    "type": "number",
                    "description": (
                        "Page number for paginated results (starts at 1). Use in combination with "
                        "resultsPerPage to navigate through large result sets."
                    ),
                },
                "resultsPerPage": {
                    "type": "number",
                    "description": (
                        "Number of results to show per page (default: 5, max: 10). Controls how many "
                        "results are returned for each page."
                    ),
                },
                "sort": {
                    "type": "string",
                    "description": (
                        'Sorting method for search results. Options: "relevance" (default) or "date" '
                        "(most recent first)."
                    ),
                },
            },
            "required": ["query"],
        },
    ),
    Tool(
        name=EXTRACT_WEBPAGE_CONTENT,
        description=(
            "Extract and analyze content from a webpage, converting it to readable text. This tool "
            "fetches the main content while removing ads, navigation elements, and other clutter. Use "
            "it to get detailed information from specific pages found via google_search. Works with "
            "most common webpage formats including articles, blogs, and documentation."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": (
                        "Full URL of the webpage to extract content from (must start with http:// or "
                        "https://). Ensure the URL is from a public webpage and not behind authentication."
                    ),
                },
                "format": _FORMAT_PROPERTY,
            },
            "required": ["url"],
        },
    ),
    Tool(
        name=EXTRACT_MULTIPLE_WEBPAGES,
        description=(
            "Extract and analyze content from multiple webpages in a single request. This tool is ideal "
            "for comparing information across different sources or gathering comprehensive information "
            f"on a topic. Limited to {MAX_BATCH_URLS} URLs per request to maintain performance."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "urls": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": (
                        "Array of webpage URLs to extract content from. Each URL must be public and start "
                        f"with http:// or https://. Maximum {MAX_BATCH_URLS} URLs per request."
                    ),
                },
                "format": _FORMAT_PROPERTY,
            },
            "required": ["urls"],
        },
    ),
)

TOOL_NAMES: frozenset[str] = frozenset(tool.name for tool in SEARCH_TOOLS)

_TOOLS_BY_NAME = MappingProxyType({tool.name: tool for tool in SEARCH_TOOLS})


def get_tool(name: str) -> Tool | None:
    """Look up a tool definition by name."""
    return _TOOLS_BY_NAME.get(name)


def list_tools() -> list[dict[str, Any]]:
    """Return the catalog in MCP ``tools/list`` wire shape.

    A fresh structure is built on every call so callers can never mutate
    the shared definitions.
    """
    return [tool.model_dump(mode="json", by_alias=True, exclude_none=True) for tool in SEARCH_TOOLS]


def get_tool_reference() -> str:
    """Short markdown reference of the catalog, one line per tool."""
    lines = ["# Search Tool Reference\n"]
    for tool in SEARCH_TOOLS:
        desc = tool.description.split(". ")[0] if tool.description else ""
        lines.append(f"- **{tool.name}**: {desc}")
    return "\n".join(lines)
