"""Collaborator fakes shared across the test suite."""

from __future__ import annotations

from google_search_mcp.core.exceptions import ExtractionError
from google_search_mcp.providers.base import (
    ContentPreview,
    ContentStats,
    ExtractionFailure,
    OutputFormat,
    PageContent,
    SearchFilters,
    SearchResponse,
)


class FakeSearchProvider:
    """SearchProvider that records calls and returns a canned response."""

    def __init__(self, response: SearchResponse | None = None, error: Exception | None = None):
        self.response = response if response is not None else SearchResponse()
        self.error = error
        self.calls: list[tuple[str, int | None, SearchFilters | None]] = []

    async def search(self, query, limit=None, filters=None):
        self.calls.append((query, limit, filters))
        if self.error is not None:
            raise self.error
        return self.response


class FakeContentExtractor:
    """ContentExtractor that records calls and builds pages from the URL."""

    def __init__(self, error: Exception | None = None, failures: dict[str, str] | None = None):
        self.error = error
        self.failures = failures or {}
        self.calls: list[tuple[str, object, OutputFormat]] = []

    async def extract_content(self, url, format=OutputFormat.MARKDOWN):
        self.calls.append(("single", url, format))
        if self.error is not None:
            raise self.error
        if not url.startswith(("http://", "https://")):
            raise ExtractionError(url, f"Invalid URL: '{url}'. URL must start with http:// or https://")
        return make_page(url)

    async def batch_extract_content(self, urls, format=OutputFormat.MARKDOWN):
        self.calls.append(("batch", list(urls), format))
        if self.error is not None:
            raise self.error
        return {
            url: ExtractionFailure(error=self.failures[url]) if url in self.failures else make_page(url)
            for url in urls
        }


def make_page(url: str, text: str | None = None) -> PageContent:
    body = text or f"Readable text extracted from {url}. " * 20
    return PageContent(
        url=url,
        title=f"Title of {url}",
        description="A page used in tests",
        stats=ContentStats(word_count=len(body.split()), approximate_chars=len(body)),
        content_preview=ContentPreview(first_500_chars=body[:500]),
        content=body,
    )
