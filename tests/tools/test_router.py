"""Tests for the tool router pipeline."""

from __future__ import annotations

import anyio
import pytest
from helpers import FakeContentExtractor, FakeSearchProvider

from google_search_mcp.core.exceptions import ConfigException, ExtractionError, SearchBackendError
from google_search_mcp.providers.base import OutputFormat, SearchFilters, SearchResponse
from google_search_mcp.server.metrics import MetricsCollector
from google_search_mcp.tools.formatters import NO_RESULTS_GUIDANCE
from google_search_mcp.tools.router import ToolRouter


class TestGoogleSearch:
    async def test_success(self, router, search_provider):
        result = await router.call_tool("google_search", {"query": "rust ownership", "num_results": "3"})

        assert result.is_error is False
        assert result.first_text.startswith('Search results for "rust ownership":')
        assert search_provider.calls == [("rust ownership", 3, None)]

    async def test_filters_are_passed_through(self, router, search_provider):
        await router.call_tool("google_search", {"query": "rust", "site": "reddit.com", "page": "2"})

        _, _, filters = search_provider.calls[0]
        assert filters == SearchFilters(site="reddit.com", page=2)

    async def test_zero_results_is_soft_error(self, content_extractor):
        router = ToolRouter(FakeSearchProvider(SearchResponse()), content_extractor)
        result = await router.call_tool("google_search", {"query": "zzzz"})

        assert result.is_error is True
        assert result.first_text == NO_RESULTS_GUIDANCE

    async def test_backend_error_differs_from_empty_results(self, content_extractor):
        failing = ToolRouter(
            FakeSearchProvider(error=SearchBackendError("Google search failed: Daily Limit Exceeded", status=429)),
            content_extractor,
        )
        empty = ToolRouter(FakeSearchProvider(SearchResponse()), content_extractor)

        failed = await failing.call_tool("google_search", {"query": "rust"})
        nothing = await empty.call_tool("google_search", {"query": "rust"})

        assert failed.is_error and nothing.is_error
        assert failed.first_text == "Google search failed: Daily Limit Exceeded"
        assert failed.first_text != nothing.first_text

    async def test_missing_credentials(self, content_extractor):
        error = ConfigException("Google Custom Search is not configured", missing_vars=["GOOGLE_API_KEY"])
        router = ToolRouter(FakeSearchProvider(error=error), content_extractor)

        result = await router.call_tool("google_search", {"query": "rust"})
        assert result.is_error
        assert result.first_text.startswith("Google Custom Search is not configured")

    async def test_unexpected_error_becomes_result(self, content_extractor):
        router = ToolRouter(FakeSearchProvider(error=RuntimeError("socket exploded")), content_extractor)
        result = await router.call_tool("google_search", {"query": "rust"})
        assert result.is_error
        assert result.first_text == "socket exploded"

    async def test_missing_query(self, router, search_provider):
        result = await router.call_tool("google_search", {})
        assert result.is_error
        assert "query is required" in result.first_text
        assert search_provider.calls == []


class TestExtractWebpage:
    async def test_success(self, router, content_extractor):
        result = await router.call_tool("extract_webpage_content", {"url": "https://example.com", "format": "text"})

        assert result.is_error is False
        assert result.first_text.startswith("Content from: https://example.com")
        assert content_extractor.calls == [("single", "https://example.com", OutputFormat.TEXT)]

    async def test_invalid_url_gives_troubleshooting(self, router):
        result = await router.call_tool("extract_webpage_content", {"url": "not-a-url"})

        assert result.is_error
        assert "Invalid URL" in result.first_text
        assert "Common issues:" in result.first_text

    async def test_fetch_failure(self, search_provider):
        extractor = FakeContentExtractor(error=ExtractionError("https://example.com", "Failed to fetch: HTTP 403"))
        router = ToolRouter(search_provider, extractor)

        result = await router.call_tool("extract_webpage_content", {"url": "https://example.com"})
        assert result.is_error
        assert result.first_text.startswith("Failed to fetch: HTTP 403\n\nCommon issues:")


class TestExtractMultiple:
    async def test_success(self, router, content_extractor):
        urls = ["https://a.example", "https://b.example"]
        result = await router.call_tool("extract_multiple_webpages", {"urls": urls})

        assert result.is_error is False
        assert result.first_text.startswith("Content from 2 webpages:")
        assert content_extractor.calls == [("batch", urls, OutputFormat.MARKDOWN)]

    async def test_six_urls_rejected_without_calls(self, router, content_extractor, search_provider):
        urls = [f"https://example.com/{i}" for i in range(6)]
        result = await router.call_tool("extract_multiple_webpages", {"urls": urls})

        assert result.is_error
        assert "Maximum 5 URLs" in result.first_text
        assert content_extractor.calls == []
        assert search_provider.calls == []

    async def test_five_urls_allowed(self, router, content_extractor):
        urls = [f"https://example.com/{i}" for i in range(5)]
        result = await router.call_tool("extract_multiple_webpages", {"urls": urls})
        assert result.is_error is False
        assert len(content_extractor.calls) == 1

    async def test_zero_urls_is_soft_error(self, router, content_extractor):
        result = await router.call_tool("extract_multiple_webpages", {"urls": []})
        assert result.is_error
        assert "No URLs provided" in result.first_text
        assert content_extractor.calls == []

    async def test_per_url_failures_are_not_errors(self, search_provider):
        extractor = FakeContentExtractor(failures={"https://b.example": "Failed to fetch https://b.example: HTTP 500"})
        router = ToolRouter(search_provider, extractor)

        result = await router.call_tool("extract_multiple_webpages", {"urls": ["https://a.example", "https://b.example"]})
        assert result.is_error is False
        assert "Error: Failed to fetch https://b.example: HTTP 500" in result.first_text

    async def test_batch_failure(self, search_provider):
        router = ToolRouter(search_provider, FakeContentExtractor(error=RuntimeError("pool exhausted")))
        result = await router.call_tool("extract_multiple_webpages", {"urls": ["https://a.example"]})
        assert result.is_error
        assert result.first_text.startswith("pool exhausted\n\nCommon issues:")
        assert "Consider reducing the number of URLs" in result.first_text

    async def test_urls_must_be_list(self, router):
        result = await router.call_tool("extract_multiple_webpages", {"urls": "https://a.example"})
        assert result.is_error
        assert "urls must be an array" in result.first_text


class SlowSearchProvider:
    async def search(self, query, limit=None, filters=None):
        await anyio.sleep(10)
        return SearchResponse()


class TestRouting:
    async def test_unknown_tool(self, router):
        result = await router.call_tool("web_search", {"query": "rust"})
        assert result.is_error
        assert result.first_text == "Unknown tool: web_search"

    async def test_timeout(self, content_extractor):
        router = ToolRouter(SlowSearchProvider(), content_extractor, timeout=0.05)
        result = await router.call_tool("google_search", {"query": "rust"})
        assert result.is_error
        assert "timed out" in result.first_text

    async def test_records_metrics(self, search_provider, content_extractor):
        metrics = MetricsCollector()
        router = ToolRouter(search_provider, content_extractor, metrics=metrics)

        await router.call_tool("google_search", {"query": "rust"})
        await router.call_tool("extract_multiple_webpages", {"urls": []})

        assert metrics.tool_call_count("google_search", "success") == 1
        assert metrics.tool_call_count("extract_multiple_webpages", "error") == 1

    @pytest.mark.parametrize("arguments", [None, {}])
    async def test_missing_arguments_never_raise(self, router, arguments):
        result = await router.call_tool("extract_webpage_content", arguments)
        assert result.is_error
