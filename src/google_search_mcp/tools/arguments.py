"""Argument normalization for tool calls.

Agents routinely send loosely typed arguments (numbers as strings, filters
as numbers). Optional fields are therefore coerced rather than rejected,
while the shape of the call itself is strict: an unknown tool name, a
missing required field or a non-list ``urls`` raises ArgumentError before
any collaborator is involved.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..core.exceptions import ArgumentError, UnknownToolError
from ..providers.base import OutputFormat, SearchFilters
from .definitions import EXTRACT_MULTIPLE_WEBPAGES, EXTRACT_WEBPAGE_CONTENT, GOOGLE_SEARCH


@dataclass(frozen=True)
class SearchRequest:
    query: str
    num_results: int | None = None
    filters: SearchFilters = field(default_factory=SearchFilters)


@dataclass(frozen=True)
class ExtractRequest:
    url: str
    format: OutputFormat = OutputFormat.MARKDOWN


@dataclass(frozen=True)
class BatchExtractRequest:
    urls: tuple[str, ...]
    format: OutputFormat = OutputFormat.MARKDOWN


ToolRequest = SearchRequest | ExtractRequest | BatchExtractRequest


def coerce_str(value: Any) -> str | None:
    """Stringify any truthy value; falsy values count as absent."""
    if isinstance(value, str):
        return value.strip() or None
    if not value:
        return None
    return str(value)


def coerce_int(value: Any) -> int | None:
    """Coerce ints, integral floats and numeric strings; drop anything else."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
            return int(number) if number.is_integer() else None
    return None


def coerce_format(value: Any) -> OutputFormat:
    """Map a requested output format onto OutputFormat, defaulting to markdown."""
    text = coerce_str(value)
    if text is None:
        return OutputFormat.MARKDOWN
    try:
        return OutputFormat(text.lower())
    except ValueError:
        return OutputFormat.MARKDOWN


def _require_mapping(tool_name: str, arguments: Any) -> Mapping[str, Any]:
    if arguments is None:
        return {}
    if not isinstance(arguments, Mapping):
        raise ArgumentError(tool_name, f"Invalid arguments for {tool_name} tool: expected an object")
    return arguments


def parse_search(arguments: Mapping[str, Any]) -> SearchRequest:
    if "query" not in arguments or arguments["query"] is None:
        raise ArgumentError(GOOGLE_SEARCH, "Invalid arguments for google_search tool: query is required", field="query")
    query = str(arguments["query"]).strip()
    if not query:
        raise ArgumentError(GOOGLE_SEARCH, "Invalid arguments for google_search tool: query must not be empty", field="query")

    filters = SearchFilters(
        site=coerce_str(arguments.get("site")),
        language=coerce_str(arguments.get("language")),
        date_restrict=coerce_str(arguments.get("dateRestrict")),
        exact_terms=coerce_str(arguments.get("exactTerms")),
        result_type=coerce_str(arguments.get("resultType")),
        page=coerce_int(arguments.get("page")),
        results_per_page=coerce_int(arguments.get("resultsPerPage")),
        sort=coerce_str(arguments.get("sort")),
    )
    return SearchRequest(query=query, num_results=coerce_int(arguments.get("num_results")), filters=filters)


def parse_extract(arguments: Mapping[str, Any]) -> ExtractRequest:
    if "url" not in arguments or arguments["url"] is None:
        raise ArgumentError(
            EXTRACT_WEBPAGE_CONTENT,
            "Invalid arguments for extract_webpage_content tool: url is required",
            field="url",
        )
    return ExtractRequest(url=str(arguments["url"]).strip(), format=coerce_format(arguments.get("format")))


def parse_batch_extract(arguments: Mapping[str, Any]) -> BatchExtractRequest:
    urls = arguments.get("urls")
    if not isinstance(urls, list | tuple):
        raise ArgumentError(
            EXTRACT_MULTIPLE_WEBPAGES,
            "Invalid arguments for extract_multiple_webpages tool: urls must be an array of strings",
            field="urls",
            value=urls,
        )
    return BatchExtractRequest(
        urls=tuple(str(url).strip() for url in urls),
        format=coerce_format(arguments.get("format")),
    )


_PARSERS = {
    GOOGLE_SEARCH: parse_search,
    EXTRACT_WEBPAGE_CONTENT: parse_extract,
    EXTRACT_MULTIPLE_WEBPAGES: parse_batch_extract,
}


def parse_arguments(tool_name: str, arguments: Any) -> ToolRequest:
    """Validate a raw tool call and return its typed request.

    Raises:
        UnknownToolError: If the tool is not in the catalog
        ArgumentError: If the arguments do not fit the tool's shape
    """
    parser = _PARSERS.get(tool_name)
    if parser is None:
        raise UnknownToolError(tool_name)
    return parser(_require_mapping(tool_name, arguments))
