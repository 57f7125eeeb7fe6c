"""Site crawler: breadth-first traversal over a bounded frontier."""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import monotonic
from typing import Deque, List, Optional, Set, Tuple

from .config import SiteSettings
from .document import FetchedPage, StoredDocument
from .extract import extract_content
from .fetch import Fetcher
from .links import harvest_links, is_admitted, is_interactive_route, parse_sitemap
from .playground import needs_fallback, playground_fallback
from .store import DocumentStore

LOGGER = logging.getLogger(__name__)


@dataclass
class SiteCrawlOptions:
    """Options for site crawling.

    ``None`` patterns fall back to the site's include/exclude defaults.
    """

    max_depth: int = 10
    max_pages: int = 500
    delay: float = 1.0
    include_patterns: Optional[List[str]] = None
    exclude_patterns: Optional[List[str]] = None
    include_subdomains: bool = False
    use_sitemap: bool = True


@dataclass
class SiteCrawlResult:
    """Result of a site crawl operation."""

    discovered_urls: List[str] = field(default_factory=list)
    crawled_urls: List[str] = field(default_factory=list)
    failed_urls: List[str] = field(default_factory=list)
    cached_urls: List[str] = field(default_factory=list)
    duration: float = 0.0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


@dataclass
class Frontier:
    """Traversal state owned by a single crawl call."""

    visited: List[str] = field(default_factory=list)
    queue: Deque[Tuple[str, int]] = field(default_factory=deque)
    failed: Set[str] = field(default_factory=set)
    _visited_set: Set[str] = field(default_factory=set, repr=False)

    def enqueue(self, url: str, depth: int) -> None:
        self.queue.append((url, depth))

    def mark_visited(self, url: str) -> None:
        if url not in self._visited_set:
            self._visited_set.add(url)
            self.visited.append(url)

    def is_visited(self, url: str) -> bool:
        return url in self._visited_set


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


async def fetch_document(
    fetcher: Fetcher, url: str, *, site: Optional[SiteSettings] = None
) -> StoredDocument:
    """Fetch and extract one page, substituting curated explorer content."""
    site = site or SiteSettings()
    interactive = is_interactive_route(url, site)
    html = await fetcher.fetch(url, render=interactive)
    content = extract_content(html, url, site=site)

    if interactive and needs_fallback(content):
        LOGGER.info("Using fallback content for interactive route: %s", url)
        content = playground_fallback(content, site)

    page = FetchedPage(
        url=url,
        title=content.title,
        raw_html=html,
        fetched_at=datetime.now(timezone.utc).isoformat(),
        content_hash=content_hash(content.main_text),
    )
    return StoredDocument(page=page, content=content)


async def _sitemap_urls(fetcher: Fetcher, site: SiteSettings) -> List[str]:
    """Best-effort sitemap read; any failure yields no URLs."""
    try:
        xml = await fetcher.fetch(site.sitemap_url)
        urls = parse_sitemap(xml, site.base_url)
    except Exception as exc:
        LOGGER.debug("No sitemap found or error parsing it: %s", exc)
        return []
    LOGGER.info("Found %d URLs in sitemap", len(urls))
    return urls


async def crawl_site_async(
    fetcher: Fetcher,
    store: DocumentStore,
    options: Optional[SiteCrawlOptions] = None,
    *,
    site: Optional[SiteSettings] = None,
) -> SiteCrawlResult:
    """
    Crawl the documentation site breadth-first and persist every page.

    Args:
        fetcher: Collaborator returning raw HTML for a URL.
        store: Collaborator persisting StoredDocument values by URL.
        options: Depth/page limits, politeness delay and admission patterns.
        site: Site description; seeds and default patterns come from it.

    Returns:
        SiteCrawlResult with discovered, crawled, failed and cached URLs.
        Per-page failures are recorded, never raised.
    """
    options = options or SiteCrawlOptions()
    site = site or SiteSettings()
    include = (
        options.include_patterns
        if options.include_patterns is not None
        else site.include_patterns
    )
    exclude = (
        options.exclude_patterns
        if options.exclude_patterns is not None
        else site.exclude_patterns
    )

    def admitted(url: str) -> bool:
        if is_admitted(url, include, exclude):
            return True
        LOGGER.debug("Not admitted: %s", url)
        return False

    started_at = datetime.now(timezone.utc)
    start = monotonic()
    LOGGER.info(
        "Starting crawl of %s (max_depth=%d, max_pages=%d)",
        site.base_url,
        options.max_depth,
        options.max_pages,
    )

    frontier = Frontier()
    cached: List[str] = []

    for url in site.seed_urls:
        if admitted(url):
            frontier.enqueue(url, 0)
    if options.use_sitemap:
        for url in await _sitemap_urls(fetcher, site):
            if admitted(url):
                frontier.enqueue(url, 0)

    while frontier.queue and len(frontier.visited) < options.max_pages:
        url, depth = frontier.queue.popleft()
        if frontier.is_visited(url) or depth > options.max_depth:
            continue

        frontier.mark_visited(url)
        try:
            stored = store.get(url) if store.has(url) else None
            if stored is not None:
                LOGGER.info("Already stored: %s", url)
                cached.append(url)
                html = stored.page.raw_html
            else:
                LOGGER.info("Crawling (depth %d): %s", depth, url)
                document = await fetch_document(fetcher, url, site=site)
                store.put(url, document)
                html = document.page.raw_html
        except Exception as exc:
            LOGGER.warning("Failed to crawl %s: %s", url, exc)
            frontier.failed.add(url)
            continue

        for link in harvest_links(
            html,
            url,
            site_url=site.base_url,
            include_subdomains=options.include_subdomains,
        ):
            if not frontier.is_visited(link) and admitted(link):
                frontier.enqueue(link, depth + 1)

        if stored is None and options.delay > 0:
            await asyncio.sleep(options.delay)

    finished_at = datetime.now(timezone.utc)
    result = SiteCrawlResult(
        discovered_urls=list(frontier.visited),
        crawled_urls=[url for url in frontier.visited if url not in frontier.failed],
        failed_urls=[url for url in frontier.visited if url in frontier.failed],
        cached_urls=cached,
        duration=monotonic() - start,
        started_at=started_at,
        finished_at=finished_at,
    )
    LOGGER.info(
        "Crawl complete: %d discovered, %d crawled, %d failed in %.2fs",
        len(result.discovered_urls),
        len(result.crawled_urls),
        len(result.failed_urls),
        result.duration,
    )
    return result


def crawl_site(
    fetcher: Fetcher,
    store: DocumentStore,
    options: Optional[SiteCrawlOptions] = None,
    *,
    site: Optional[SiteSettings] = None,
) -> SiteCrawlResult:
    """Synchronous wrapper for crawl_site_async."""
    return asyncio.run(crawl_site_async(fetcher, store, options, site=site))
