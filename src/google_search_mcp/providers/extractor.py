# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""HTML page fetching and conversion to readable text.

Fetches pages with aiohttp and converts them with BeautifulSoup. The
conversion is intentionally plain: noise elements are dropped and the
remaining block elements are rendered as markdown, text or HTML.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import re
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from ..core.config import CoreSettings, get_config
from ..core.exceptions import ExtractionError
from .base import ContentPreview, ContentStats, ExtractionFailure, OutputFormat, PageContent

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 500
MAX_RESPONSE_BYTES = 5 * 1024 * 1024

NOISE_TAGS = ["script", "style", "noscript", "svg", "iframe", "nav", "header", "footer", "aside", "form"]
NOISE_SELECTORS = [
    ".nav",
    ".navbar",
    ".menu",
    ".sidebar",
    ".footer",
    ".header",
    ".ad-container",
    ".advertisement",
    ".social-share",
    ".cookie-banner",
    ".modal",
    "#nav",
    "#header",
    "#footer",
]

BLOCK_TAGS = {"p", "div", "section", "article", "main", "blockquote", "pre", "table", "tr", "ul", "ol", "li", "br"}
HEADING_TAGS = {"h1": "#", "h2": "##", "h3": "###", "h4": "####", "h5": "#####", "h6": "######"}


def validate_url(url: str) -> str:
    """Return a stripped URL or raise ExtractionError for unsupported schemes."""
    cleaned = (url or "").strip()
    if not re.match(r"^https?://[^\s/$.?#].[^\s]*$", cleaned, re.IGNORECASE):
        raise ExtractionError(url, f"Invalid URL: {url!r}. URL must start with http:// or https://")
    return cleaned


def _collapse_whitespace(text: str) -> str:
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _strip_noise(soup: BeautifulSoup) -> None:
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    for selector in NOISE_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()


def _content_root(soup: BeautifulSoup) -> Tag:
    """Prefer <main>/<article> when present, else the body."""
    for name in ("main", "article"):
        node = soup.find(name)
        if isinstance(node, Tag) and node.get_text(strip=True):
            return node
    body = soup.body
    return body if isinstance(body, Tag) else soup


def _render_markdown(node: Tag, base_url: str) -> str:
    parts: list[str] = []

    def walk(element: Tag | NavigableString) -> None:
        if isinstance(element, PreformattedString):
            return
        if isinstance(element, NavigableString):
            parts.append(str(element))
            return
        if not isinstance(element, Tag):
            return
        name = element.name
        if name in HEADING_TAGS:
            parts.append(f"\n\n{HEADING_TAGS[name]} {element.get_text(' ', strip=True)}\n\n")
            return
        if name == "a":
            text = element.get_text(" ", strip=True)
            href = element.get("href")
            if text and isinstance(href, str) and not href.startswith(("#", "javascript:")):
                parts.append(f"[{text}]({urljoin(base_url, href)})")
            else:
                parts.append(text)
            return
        if name == "img":
            return
        if name == "li":
            parts.append("\n- ")
        elif name in ("strong", "b"):
            parts.append("**")
        elif name in ("em", "i"):
            parts.append("_")
        elif name == "code" and element.parent is not None and element.parent.name != "pre":
            parts.append("`")
        elif name == "pre":
            parts.append("\n\n```\n")
            parts.append(element.get_text())
            parts.append("\n```\n\n")
            return
        elif name in BLOCK_TAGS:
            parts.append("\n\n")

        for child in element.children:
            walk(child)

        if name in ("strong", "b"):
            parts.append("**")
        elif name in ("em", "i"):
            parts.append("_")
        elif name == "code" and element.parent is not None and element.parent.name != "pre":
            parts.append("`")
        elif name in BLOCK_TAGS and name != "li":
            parts.append("\n\n")

    walk(node)
    return _collapse_whitespace("".join(parts))


def parse_html(html: str, url: str, format: OutputFormat = OutputFormat.MARKDOWN) -> PageContent:
    """Convert an HTML document into PageContent in the requested format."""
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    if soup.title and soup.title.string:
        title = soup.title.string.strip()
    if not title:
        og_title = soup.find("meta", attrs={"property": "og:title"})
        if isinstance(og_title, Tag):
            title = str(og_title.get("content") or "").strip()

    description = None
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if isinstance(meta, Tag) and meta.get("content"):
            description = str(meta.get("content")).strip()
            break

    _strip_noise(soup)
    root = _content_root(soup)

    plain_text = _collapse_whitespace(root.get_text("\n"))
    if format == OutputFormat.HTML:
        content = str(root)
    elif format == OutputFormat.TEXT:
        content = plain_text
    else:
        content = _render_markdown(root, url)

    return PageContent(
        url=url,
        title=title or url,
        description=description or None,
        stats=ContentStats(
            word_count=len(plain_text.split()),
            approximate_chars=len(plain_text),
        ),
        content_preview=ContentPreview(first_500_chars=content[:PREVIEW_LENGTH]),
        content=content,
        format=format,
    )


def decode_body(raw: bytes, charset: str | None) -> str:
    """Decode a page body; unknown or missing charsets fall back to utf-8."""
    encoding = "utf-8"
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            logger.debug(f"Unknown charset {charset!r}, decoding as utf-8")
    return raw.decode(encoding, errors="replace")


class HtmlContentExtractor:
    """ContentExtractor that fetches pages over HTTP and parses them locally."""

    def __init__(self, settings: CoreSettings | None = None) -> None:
        self.settings = settings or get_config()

    async def extract_content(self, url: str, format: OutputFormat = OutputFormat.MARKDOWN) -> PageContent:
        target = validate_url(url)
        timeout = aiohttp.ClientTimeout(total=self.settings.http_timeout)
        async with aiohttp.ClientSession(timeout=timeout, headers=self._headers()) as session:
            return await self._extract(session, target, format)

    async def batch_extract_content(
        self,
        urls: list[str],
        format: OutputFormat = OutputFormat.MARKDOWN,
    ) -> dict[str, PageContent | ExtractionFailure]:
        results: dict[str, PageContent | ExtractionFailure] = {}
        timeout = aiohttp.ClientTimeout(total=self.settings.http_timeout)

        async with aiohttp.ClientSession(timeout=timeout, headers=self._headers()) as session:

            async def one(url: str) -> PageContent | ExtractionFailure:
                try:
                    return await self._extract(session, validate_url(url), format)
                except ExtractionError as e:
                    return ExtractionFailure(error=e.message)
                except Exception as e:  # Intentionally broad: one page never sinks the batch
                    logger.exception(f"Unexpected error extracting {url}")
                    return ExtractionFailure(error=str(e) or f"Failed to extract {url}")

            outcomes = await asyncio.gather(*(one(url) for url in urls))

        for url, outcome in zip(urls, outcomes):
            results[url] = outcome
        return results

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def _extract(self, session: aiohttp.ClientSession, url: str, format: OutputFormat) -> PageContent:
        html = await self._fetch_html(session, url)
        return parse_html(html, url, format)

    async def _fetch_html(self, session: aiohttp.ClientSession, url: str) -> str:
        try:
            async with session.get(url, allow_redirects=True) as response:
                if response.status >= 400:
                    raise ExtractionError(url, f"Failed to fetch {url}: HTTP {response.status}", status=response.status)
                content_type = response.headers.get("Content-Type", "")
                if content_type and "html" not in content_type and "text" not in content_type:
                    raise ExtractionError(url, f"Unsupported content type for {url}: {content_type}")
                raw = await response.content.read(MAX_RESPONSE_BYTES)
                return decode_body(raw, response.charset)
        except aiohttp.ClientError as e:
            logger.warning(f"Network error fetching {url}: {e}")
            raise ExtractionError(url, f"Failed to fetch {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise ExtractionError(url, f"Timed out fetching {url}") from e
