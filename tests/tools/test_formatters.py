"""Tests for tool result text formatting."""

from __future__ import annotations

from helpers import make_page

from google_search_mcp.providers.base import ExtractionFailure, PaginationInfo, SearchResponse, SearchResult
from google_search_mcp.tools.formatters import (
    PAGE_TROUBLESHOOTING,
    format_batch_content,
    format_failure,
    format_page_content,
    format_search_results,
    too_many_urls_text,
    truncate_preview,
)


class TestFormatSearchResults:
    def test_full_layout(self, search_response):
        text = format_search_results("rust ownership", search_response)

        assert text.startswith('Search results for "rust ownership":\n\n')
        assert "Categories: Documentation (1), Social Media (1)" in text
        assert "Showing page 1 of approximately 1230000 results" in text
        assert "1. Understanding Ownership - The Rust Programming Language\n" in text
        assert "   URL: https://doc.rust-lang.org/book/ch04-01-what-is-ownership.html\n" in text
        assert "2. Rust ownership explained" in text
        assert text.rstrip().endswith("Navigation: Use 'page: 2' for more results.")

    def test_items_are_numbered_in_order(self, search_response):
        text = format_search_results("q", search_response)
        assert text.index("1. Understanding") < text.index("2. Rust ownership")

    def test_previous_and_next_hints(self):
        response = SearchResponse(
            results=[SearchResult("t", "https://example.com", "s")],
            pagination=PaginationInfo(current_page=3, has_next_page=True, has_previous_page=True),
        )
        text = format_search_results("q", response)
        assert "Navigation: Use 'page: 2' for previous results. Use 'page: 4' for more results." in text

    def test_without_pagination_or_categories(self):
        response = SearchResponse(results=[SearchResult("Title", "https://example.com", "Snippet")])
        text = format_search_results("q", response)

        assert "Categories:" not in text
        assert "Showing page" not in text
        assert "Navigation:" not in text
        assert "1. Title\n   URL: https://example.com\n   Snippet\n" in text


class TestFormatPageContent:
    def test_layout(self):
        page = make_page("https://example.com/article")
        text = format_page_content(page)

        lines = text.splitlines()
        assert lines[0] == "Content from: https://example.com/article"
        assert "Title: Title of https://example.com/article" in lines
        assert "Description: A page used in tests" in lines
        assert f"Stats: {page.stats.word_count} words, {page.stats.approximate_chars} characters" in lines
        assert "Content Preview:" in lines
        assert page.content_preview.first_500_chars in text
        assert "Summary:" not in text
        assert text.endswith("particular aspects of this webpage.")

    def test_summary_when_present(self):
        page = make_page("https://example.com")
        page.summary = "Short summary."
        assert "Summary: Short summary." in format_page_content(page)


class TestFormatBatchContent:
    def test_blocks_in_request_order(self):
        urls = ["https://b.example", "https://a.example"]
        results = {
            "https://a.example": make_page("https://a.example"),
            "https://b.example": ExtractionFailure(error="Failed to fetch https://b.example: HTTP 404"),
        }
        text = format_batch_content(urls, results)

        assert text.startswith("Content from 2 webpages:\n\n")
        assert text.index("URL: https://b.example") < text.index("URL: https://a.example")
        assert "URL: https://b.example\nError: Failed to fetch https://b.example: HTTP 404\n" in text
        assert "Title: Title of https://a.example" in text
        assert "use the extract_webpage_content tool" in text

    def test_previews_are_truncated(self):
        page = make_page("https://a.example", text="x" * 400)
        text = format_batch_content(["https://a.example"], {"https://a.example": page})
        assert f"Preview: {'x' * 150}...\n" in text

    def test_missing_result(self):
        text = format_batch_content(["https://a.example"], {})
        assert "Error: No result returned for this URL" in text

    def test_truncate_preview(self):
        assert truncate_preview("abc", 2) == "ab..."
        assert truncate_preview("short") == "short..."


class TestFailures:
    def test_format_failure_appends_troubleshooting(self):
        text = format_failure("Invalid URL", PAGE_TROUBLESHOOTING)
        assert text.startswith("Invalid URL\n\nCommon issues:")

    def test_format_failure_without_troubleshooting(self):
        assert format_failure("boom") == "boom"

    def test_too_many_urls(self):
        assert too_many_urls_text(5).startswith("Maximum 5 URLs allowed per request")
