# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Text formatters for tool results.

Each formatter takes collaborator output and returns the single
human/agent-readable text block carried by a ToolResult.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..providers.base import ExtractionFailure, PageContent, SearchResponse

BATCH_PREVIEW_LENGTH = 150

NO_RESULTS_GUIDANCE = (
    "No results found. Try:\n"
    "- Using different keywords\n"
    "- Removing quotes from non-exact phrases\n"
    "- Using more general terms"
)

PAGE_TROUBLESHOOTING = (
    "Common issues:\n"
    "- Check if the URL is accessible in a browser\n"
    "- Ensure the webpage is public\n"
    "- Try again if it's a temporary network issue"
)

BATCH_TROUBLESHOOTING = (
    "Common issues:\n"
    "- Check if all URLs are accessible in a browser\n"
    "- Ensure all webpages are public\n"
    "- Try again if it's a temporary network issue\n"
    "- Consider reducing the number of URLs"
)

SEARCH_TROUBLESHOOTING = (
    "Common issues:\n"
    "- Check that the search API credentials are configured\n"
    "- Try again if it's a temporary network issue"
)


def too_many_urls_text(limit: int) -> str:
    return f"Maximum {limit} URLs allowed per request to maintain performance. Please reduce the number of URLs."


def no_urls_text() -> str:
    return "No URLs provided. Pass at least one URL in the urls array, or use extract_webpage_content for a single page."


def format_search_results(query: str, response: SearchResponse) -> str:
    """Format search results with category, paging and navigation hints."""
    lines = [f'Search results for "{query}":', ""]

    if response.categories:
        summary = ", ".join(f"{c.name} ({c.count})" for c in response.categories)
        lines.extend([f"Categories: {summary}", ""])

    pagination = response.pagination
    if pagination:
        page_line = f"Showing page {pagination.current_page}"
        if pagination.total_results:
            page_line += f" of approximately {pagination.total_results} results"
        lines.extend([page_line, ""])

    for i, result in enumerate(response.results, 1):
        lines.append(f"{i}. {result.title}")
        lines.append(f"   URL: {result.link}")
        lines.append(f"   {result.snippet}")
        lines.append("")

    text = "\n".join(lines) + "\n"

    if pagination and (pagination.has_next_page or pagination.has_previous_page):
        hints = []
        if pagination.has_previous_page:
            hints.append(f"Use 'page: {pagination.current_page - 1}' for previous results.")
        if pagination.has_next_page:
            hints.append(f"Use 'page: {pagination.current_page + 1}' for more results.")
        text += "Navigation: " + " ".join(hints) + "\n"

    return text


def format_page_content(content: PageContent) -> str:
    """Format a single extracted page."""
    lines = [f"Content from: {content.url}", "", f"Title: {content.title}"]
    if content.description:
        lines.append(f"Description: {content.description}")
    lines.append("")
    lines.append(f"Stats: {content.stats.word_count} words, {content.stats.approximate_chars} characters")
    lines.append("")
    if content.summary:
        lines.extend([f"Summary: {content.summary}", ""])
    lines.append("Content Preview:")
    lines.append(content.content_preview.first_500_chars)
    lines.append("")
    lines.append(
        "Note: This is a preview of the content. For specific information, please ask about "
        "particular aspects of this webpage."
    )
    return "\n".join(lines)


def truncate_preview(text: str, length: int = BATCH_PREVIEW_LENGTH) -> str:
    """Cut a preview to ``length`` characters and mark it with an ellipsis."""
    return f"{text[:length]}..."


def format_batch_content(
    urls: list[str] | tuple[str, ...],
    results: Mapping[str, PageContent | ExtractionFailure],
) -> str:
    """Format a batch extraction, one block per URL in request order."""
    lines = [f"Content from {len(urls)} webpages:", ""]

    ordered = list(dict.fromkeys(urls))
    ordered.extend(url for url in results if url not in ordered)

    for url in ordered:
        result = results.get(url)
        lines.append(f"URL: {url}")
        if result is None:
            lines.extend(["Error: No result returned for this URL", ""])
            continue
        if isinstance(result, ExtractionFailure):
            lines.extend([f"Error: {result.error}", ""])
            continue

        lines.append(f"Title: {result.title}")
        if result.description:
            lines.append(f"Description: {result.description}")
        lines.append(f"Stats: {result.stats.word_count} words")
        if result.summary:
            lines.append(f"Summary: {result.summary}")
        lines.append(f"Preview: {truncate_preview(result.content_preview.first_500_chars)}")
        lines.append("")

    lines.append(
        "Note: These are previews of the content. To analyze the full content of a specific URL, "
        "use the extract_webpage_content tool with that URL."
    )
    return "\n".join(lines)


def format_failure(message: str, troubleshooting: str | None = None) -> str:
    """Combine a diagnostic with optional troubleshooting guidance."""
    if troubleshooting:
        return f"{message}\n\n{troubleshooting}"
    return message
