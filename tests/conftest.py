"""Global test fixtures for the search server test suite."""

from __future__ import annotations

import os

import pytest
from helpers import FakeContentExtractor, FakeSearchProvider

from google_search_mcp.providers.base import (
    CategoryCount,
    PaginationInfo,
    SearchResponse,
    SearchResult,
)
from google_search_mcp.tools.router import ToolRouter

# ============================================================================
# Environment
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all server-related environment variables."""
    env_prefixes = ("GOOGLE_SEARCH_MCP_", "GOOGLE_API_KEY", "GOOGLE_SEARCH_ENGINE_ID")
    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in env_prefixes):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("PORT", raising=False)


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset module-level singletons between tests."""
    import google_search_mcp.core.config as core_config
    import google_search_mcp.server.config as server_config
    import google_search_mcp.server.metrics as metrics_module

    core_config._config = None
    server_config._settings = None
    metrics_module._metrics_collector = None
    yield
    core_config._config = None
    server_config._settings = None
    metrics_module._metrics_collector = None


# ============================================================================
# Collaborators
# ============================================================================


@pytest.fixture
def search_response() -> SearchResponse:
    results = [
        SearchResult(
            title="Understanding Ownership - The Rust Programming Language",
            link="https://doc.rust-lang.org/book/ch04-01-what-is-ownership.html",
            snippet="Ownership is a set of rules that govern how a Rust program manages memory.",
            category="Documentation",
        ),
        SearchResult(
            title="Rust ownership explained",
            link="https://www.reddit.com/r/rust/comments/abc/ownership",
            snippet="A thread about borrowing and moves.",
            category="Social Media",
        ),
    ]
    return SearchResponse(
        results=results,
        pagination=PaginationInfo(
            current_page=1,
            total_results=1230000,
            results_per_page=5,
            has_next_page=True,
            has_previous_page=False,
        ),
        categories=[CategoryCount("Documentation", 1), CategoryCount("Social Media", 1)],
    )


@pytest.fixture
def search_provider(search_response) -> FakeSearchProvider:
    return FakeSearchProvider(search_response)


@pytest.fixture
def content_extractor() -> FakeContentExtractor:
    return FakeContentExtractor()


@pytest.fixture
def router(search_provider, content_extractor) -> ToolRouter:
    return ToolRouter(search_provider, content_extractor, timeout=5.0)
