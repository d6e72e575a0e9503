# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Google Custom Search JSON API client.

Maps the tool-level search filters onto Custom Search query parameters,
builds pagination metadata from the API response and groups results into
coarse categories by domain.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urlparse

import aiohttp

from ..core.cache import TTLCache
from ..core.config import CoreSettings, get_config
from ..core.exceptions import ConfigException, SearchBackendError
from .base import CategoryCount, PaginationInfo, SearchFilters, SearchResponse, SearchResult

logger = logging.getLogger(__name__)

CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

DEFAULT_NUM_RESULTS = 5
# The API refuses num > 10 and start > 91 (start + num <= 100)
MAX_NUM_RESULTS = 10
MAX_START_INDEX = 91

# Domain fragments checked in order; first match wins
CATEGORY_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("Social Media", ("facebook.com", "twitter.com", "x.com", "instagram.com", "linkedin.com", "reddit.com", "tiktok.com")),
    ("Video", ("youtube.com", "youtu.be", "vimeo.com", "dailymotion.com", "twitch.tv")),
    ("News", ("news", "cnn.com", "bbc.", "nytimes.com", "reuters.com", "theguardian.com", "apnews.com", "bloomberg.com")),
    ("Reference", ("wikipedia.org", "britannica.com", "wiktionary.org", "dictionary.com")),
    ("Academic", (".edu", "arxiv.org", "scholar.google.", "researchgate.net", "jstor.org", "sciencedirect.com", "nature.com")),
    ("Documentation", ("docs.", "developer.", "readthedocs", "github.com", "gitlab.com", "stackoverflow.com", "mozilla.org")),
    ("Shopping", ("amazon.", "ebay.", "etsy.com", "walmart.com", "shop")),
    ("Government", (".gov", ".mil")),
]


def _host_matches(host: str, fragment: str) -> bool:
    # Bare domains match the host or its subdomains; partial fragments match anywhere
    if "." in fragment and not fragment.startswith(".") and not fragment.endswith("."):
        return host == fragment or host.endswith("." + fragment)
    return fragment in host


def categorize_url(link: str) -> str:
    """Return a coarse content category for a result URL."""
    host = urlparse(link).netloc.lower().split(":")[0]
    if not host:
        return "Other"
    for name, fragments in CATEGORY_RULES:
        if any(_host_matches(host, fragment) for fragment in fragments):
            return name
    return "Other"


def summarize_categories(results: list[SearchResult]) -> list[CategoryCount]:
    """Count results per category, most common first."""
    counts: dict[str, int] = {}
    for result in results:
        name = result.category or "Other"
        counts[name] = counts.get(name, 0) + 1
    return [CategoryCount(name=name, count=count) for name, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))]


def build_query_params(
    query: str,
    limit: int | None,
    filters: SearchFilters | None,
    api_key: str,
    engine_id: str,
) -> dict[str, str]:
    """Translate a query plus filters into Custom Search request parameters."""
    filters = filters or SearchFilters()

    per_page = filters.results_per_page or limit or DEFAULT_NUM_RESULTS
    per_page = max(1, min(int(per_page), MAX_NUM_RESULTS))
    page = max(1, int(filters.page or 1))
    start = min((page - 1) * per_page + 1, MAX_START_INDEX)

    q = query
    result_type = (filters.result_type or "").lower()
    if result_type == "news":
        q = f"{q} news"
    elif result_type in ("video", "videos"):
        q = f"{q} video"

    params: dict[str, str] = {
        "key": api_key,
        "cx": engine_id,
        "q": q,
        "num": str(per_page),
        "start": str(start),
    }
    if result_type in ("image", "images"):
        params["searchType"] = "image"
    if filters.site:
        params["siteSearch"] = filters.site
        params["siteSearchFilter"] = "i"
    if filters.language:
        params["lr"] = f"lang_{filters.language}"
    if filters.date_restrict:
        params["dateRestrict"] = filters.date_restrict
    if filters.exact_terms:
        params["exactTerms"] = filters.exact_terms
    if filters.sort and filters.sort.lower() == "date":
        params["sort"] = "date"
    return params


def parse_search_response(data: dict[str, Any], page: int, per_page: int) -> SearchResponse:
    """Convert a raw Custom Search payload into a SearchResponse."""
    results = []
    for item in data.get("items", []) or []:
        link = item.get("link", "")
        results.append(
            SearchResult(
                title=item.get("title", ""),
                link=link,
                snippet=item.get("snippet", ""),
                category=categorize_url(link),
            )
        )

    total: int | None = None
    raw_total = (data.get("searchInformation") or {}).get("totalResults")
    if raw_total is not None:
        try:
            total = int(raw_total)
        except (TypeError, ValueError):
            total = None

    queries = data.get("queries") or {}
    pagination = PaginationInfo(
        current_page=page,
        total_results=total,
        results_per_page=per_page,
        has_next_page=bool(queries.get("nextPage")),
        has_previous_page=page > 1,
    )
    return SearchResponse(results=results, pagination=pagination, categories=summarize_categories(results))


class GoogleSearchService:
    """SearchProvider backed by the Google Custom Search JSON API."""

    def __init__(
        self,
        settings: CoreSettings | None = None,
        cache: TTLCache[tuple, SearchResponse] | None = None,
    ) -> None:
        self.settings = settings or get_config()
        self.cache = cache if cache is not None else TTLCache(
            max_size=self.settings.cache_max_size,
            ttl_seconds=self.settings.cache_ttl_seconds,
        )

    async def search(
        self,
        query: str,
        limit: int | None = None,
        filters: SearchFilters | None = None,
    ) -> SearchResponse:
        if not self.settings.has_search_credentials:
            missing = [
                name
                for name, value in (
                    ("GOOGLE_API_KEY", self.settings.google_api_key),
                    ("GOOGLE_SEARCH_ENGINE_ID", self.settings.google_search_engine_id),
                )
                if not value
            ]
            raise ConfigException("Google Custom Search is not configured", missing_vars=missing)

        filters = filters or SearchFilters()
        cache_key = (query, limit, filters)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Search cache hit for {query!r}")
            return cached

        params = build_query_params(
            query,
            limit,
            filters,
            self.settings.google_api_key,
            self.settings.google_search_engine_id,
        )
        data = await self._fetch(params)

        response = parse_search_response(data, page=max(1, int(filters.page or 1)), per_page=int(params["num"]))
        self.cache.set(cache_key, response)
        return response

    async def _fetch(self, params: dict[str, str]) -> dict[str, Any]:
        """Call the API and return the decoded JSON body."""
        timeout = aiohttp.ClientTimeout(total=self.settings.http_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(CUSTOM_SEARCH_URL, params=params) as response:
                    if response.status != 200:
                        message = await _error_message(response)
                        logger.warning(f"Custom Search returned HTTP {response.status}: {message}")
                        raise SearchBackendError(f"Google search failed: {message}", status=response.status)
                    return await response.json()
        except aiohttp.ClientError as e:
            logger.warning(f"Network error calling Custom Search: {e}")
            raise SearchBackendError(f"Google search request failed: {e}") from e
        except asyncio.TimeoutError as e:
            logger.warning(f"Custom Search did not answer within {self.settings.http_timeout}s")
            raise SearchBackendError(
                f"Google search request timed out after {self.settings.http_timeout:g} seconds"
            ) from e


async def _error_message(response: aiohttp.ClientResponse) -> str:
    """Pull the API's error message out of a failed response."""
    try:
        body = await response.json(content_type=None)
    except (aiohttp.ContentTypeError, ValueError):
        return f"HTTP {response.status}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"HTTP {response.status}"
