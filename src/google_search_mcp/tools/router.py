# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Request router: argument parsing, collaborator dispatch and formatting.

Both transports funnel tool calls through ToolRouter.call_tool, so the
business rules (URL cap, soft errors, coercion) live in exactly one place.
call_tool always returns a ToolResult; collaborator exceptions never
escape it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict
from typing import Any, Protocol

import anyio

from ..core.exceptions import ArgumentError, BackendError, ConfigException
from ..core.logging import ToolCallLogger, tool_logger
from ..providers.base import ContentExtractor, SearchProvider
from .arguments import BatchExtractRequest, ExtractRequest, SearchRequest, ToolRequest, parse_arguments
from .definitions import MAX_BATCH_URLS
from .formatters import (
    BATCH_TROUBLESHOOTING,
    NO_RESULTS_GUIDANCE,
    PAGE_TROUBLESHOOTING,
    SEARCH_TROUBLESHOOTING,
    format_batch_content,
    format_failure,
    format_page_content,
    format_search_results,
    no_urls_text,
    too_many_urls_text,
)
from .results import ToolResult

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 30.0


class ToolMetrics(Protocol):
    def record_tool_call(self, tool_name: str, success: bool, duration_seconds: float) -> None: ...


class ToolRouter:
    """Dispatch validated tool requests to the search and extraction collaborators."""

    def __init__(
        self,
        search_provider: SearchProvider,
        content_extractor: ContentExtractor,
        timeout: float | None = DEFAULT_TOOL_TIMEOUT,
        max_batch_urls: int = MAX_BATCH_URLS,
        metrics: ToolMetrics | None = None,
        call_logger: ToolCallLogger | None = None,
    ) -> None:
        self.search_provider = search_provider
        self.content_extractor = content_extractor
        self.timeout = timeout
        self.max_batch_urls = max_batch_urls
        self.metrics = metrics
        self.call_logger = call_logger or tool_logger

    async def call_tool(self, name: str, arguments: Any) -> ToolResult:
        """Run one tool call end to end and return its result.

        Argument errors and unknown tools come back as error results, so
        this never raises for anything the caller sent.
        """
        try:
            request = parse_arguments(name, arguments)
        except ArgumentError as e:
            logger.info(f"Rejected {name} call: {e.message}")
            self.call_logger.log_call(name, arguments if isinstance(arguments, dict) else {"arguments": arguments})
            result = ToolResult.error(e.message)
            self._record(name, result, 0.0)
            return result
        return await self.execute(name, request)

    async def execute(self, name: str, request: ToolRequest) -> ToolResult:
        """Run an already-validated request with call logging and metrics."""
        self.call_logger.log_call(name, asdict(request))
        started = time.perf_counter()
        result = await self.dispatch(request)
        self._record(name, result, time.perf_counter() - started)
        return result

    def _record(self, name: str, result: ToolResult, duration: float) -> None:
        self.call_logger.log_result(name, not result.is_error, duration * 1000)
        if self.metrics is not None:
            self.metrics.record_tool_call(name, not result.is_error, duration)

    async def dispatch(self, request: ToolRequest) -> ToolResult:
        """Run an already-validated request."""
        if isinstance(request, SearchRequest):
            return await self.search(request)
        if isinstance(request, ExtractRequest):
            return await self.extract(request)
        return await self.batch_extract(request)

    async def search(self, request: SearchRequest) -> ToolResult:
        filters = None if request.filters.is_empty() else request.filters
        try:
            with anyio.fail_after(self.timeout):
                response = await self.search_provider.search(request.query, request.num_results, filters)
        except TimeoutError:
            logger.warning(f"Search timed out after {self.timeout}s for {request.query!r}")
            return ToolResult.error(format_failure(f"Search timed out after {self.timeout:g} seconds", SEARCH_TROUBLESHOOTING))
        except ConfigException as e:
            logger.error(f"Search backend not configured: {e.message}")
            return ToolResult.error(format_failure(e.message, SEARCH_TROUBLESHOOTING))
        except BackendError as e:
            logger.warning(f"Search backend error for {request.query!r}: {e.message}")
            return ToolResult.error(e.message)
        except Exception as e:  # Intentionally broad: collaborator faults become error results
            logger.exception(f"Unexpected error during search for {request.query!r}")
            return ToolResult.error(str(e) or "Unknown error during search")

        if not response.results:
            return ToolResult.error(NO_RESULTS_GUIDANCE)

        return ToolResult.text(format_search_results(request.query, response))

    async def extract(self, request: ExtractRequest) -> ToolResult:
        try:
            with anyio.fail_after(self.timeout):
                content = await self.content_extractor.extract_content(request.url, request.format)
        except TimeoutError:
            logger.warning(f"Extraction timed out after {self.timeout}s for {request.url}")
            return ToolResult.error(format_failure(f"Timed out extracting {request.url}", PAGE_TROUBLESHOOTING))
        except BackendError as e:
            logger.info(f"Extraction failed for {request.url}: {e.message}")
            return ToolResult.error(format_failure(e.message, PAGE_TROUBLESHOOTING))
        except Exception as e:  # Intentionally broad: collaborator faults become error results
            logger.exception(f"Unexpected error extracting {request.url}")
            return ToolResult.error(format_failure(str(e) or "Unknown error occurred", PAGE_TROUBLESHOOTING))

        return ToolResult.text(format_page_content(content))

    async def batch_extract(self, request: BatchExtractRequest) -> ToolResult:
        if len(request.urls) > self.max_batch_urls:
            return ToolResult.error(too_many_urls_text(self.max_batch_urls))
        if not request.urls:
            return ToolResult.error(no_urls_text())

        urls = list(request.urls)
        try:
            with anyio.fail_after(self.timeout):
                results = await self.content_extractor.batch_extract_content(urls, request.format)
        except TimeoutError:
            logger.warning(f"Batch extraction timed out after {self.timeout}s for {len(urls)} URLs")
            return ToolResult.error(format_failure(f"Timed out extracting {len(urls)} webpages", BATCH_TROUBLESHOOTING))
        except BackendError as e:
            logger.info(f"Batch extraction failed: {e.message}")
            return ToolResult.error(format_failure(e.message, BATCH_TROUBLESHOOTING))
        except Exception as e:  # Intentionally broad: collaborator faults become error results
            logger.exception("Unexpected error during batch extraction")
            return ToolResult.error(format_failure(str(e) or "Unknown error occurred", BATCH_TROUBLESHOOTING))

        return ToolResult.text(format_batch_content(urls, results))
