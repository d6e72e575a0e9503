"""Search and extraction collaborators."""

from .base import (
    CategoryCount,
    ContentExtractor,
    ContentPreview,
    ContentStats,
    ExtractionFailure,
    OutputFormat,
    PageContent,
    PaginationInfo,
    SearchFilters,
    SearchProvider,
    SearchResponse,
    SearchResult,
)
from .extractor import HtmlContentExtractor
from .google import GoogleSearchService

__all__ = [
    "CategoryCount",
    "ContentExtractor",
    "ContentPreview",
    "ContentStats",
    "ExtractionFailure",
    "GoogleSearchService",
    "HtmlContentExtractor",
    "OutputFormat",
    "PageContent",
    "PaginationInfo",
    "SearchFilters",
    "SearchProvider",
    "SearchResponse",
    "SearchResult",
]
