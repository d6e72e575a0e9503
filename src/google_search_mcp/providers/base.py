# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Collaborator contracts consumed by the tool router.

The router only depends on these protocols and value types; the concrete
Google and HTML implementations live next to this module and can be
swapped for fakes in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable


class OutputFormat(StrEnum):
    """Rendering format for extracted page content."""

    MARKDOWN = "markdown"
    HTML = "html"
    TEXT = "text"


@dataclass(frozen=True)
class SearchFilters:
    """Optional refinements attached to a search request.

    No defaults are applied here; unset fields are left to the provider.
    """

    site: str | None = None
    language: str | None = None
    date_restrict: str | None = None
    exact_terms: str | None = None
    result_type: str | None = None
    page: int | None = None
    results_per_page: int | None = None
    sort: str | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.__dict__.values())


@dataclass
class SearchResult:
    title: str
    link: str
    snippet: str = ""
    category: str | None = None


@dataclass
class PaginationInfo:
    current_page: int = 1
    total_results: int | None = None
    results_per_page: int | None = None
    has_next_page: bool = False
    has_previous_page: bool = False


@dataclass
class CategoryCount:
    name: str
    count: int


@dataclass
class SearchResponse:
    """Ranked results plus optional pagination and category summaries."""

    results: list[SearchResult] = field(default_factory=list)
    pagination: PaginationInfo | None = None
    categories: list[CategoryCount] = field(default_factory=list)


@dataclass
class ContentStats:
    word_count: int
    approximate_chars: int


@dataclass
class ContentPreview:
    first_500_chars: str


@dataclass
class PageContent:
    """Structured text and metadata extracted from one page."""

    url: str
    title: str
    stats: ContentStats
    content_preview: ContentPreview
    description: str | None = None
    summary: str | None = None
    content: str = ""
    format: OutputFormat = OutputFormat.MARKDOWN


@dataclass
class ExtractionFailure:
    """Per-URL failure inside a batch extraction."""

    error: str


@runtime_checkable
class SearchProvider(Protocol):
    """Search backend returning ranked results for a query."""

    async def search(
        self,
        query: str,
        limit: int | None = None,
        filters: SearchFilters | None = None,
    ) -> SearchResponse: ...


@runtime_checkable
class ContentExtractor(Protocol):
    """Content backend that fetches URLs and converts them to readable text."""

    async def extract_content(self, url: str, format: OutputFormat = OutputFormat.MARKDOWN) -> PageContent: ...

    async def batch_extract_content(
        self,
        urls: list[str],
        format: OutputFormat = OutputFormat.MARKDOWN,
    ) -> dict[str, PageContent | ExtractionFailure]: ...
