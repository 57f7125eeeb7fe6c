"""Fetch primitives: a lightweight httpx path and a Crawl4AI rendering path."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx
from bs4 import BeautifulSoup
from crawl4ai import AsyncWebCrawler, BrowserConfig
from crawl4ai.models import CrawlResult

from .config import (
    APP_SHELL_SELECTORS,
    RunConfigOverrides,
    SiteSettings,
    build_render_run_config,
)
from .links import is_interactive_route

LOGGER = logging.getLogger(__name__)

MIN_STATIC_TEXT = 100


class FetchError(Exception):
    """Raised when a page cannot be fetched or rendered."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class Fetcher(Protocol):
    """Returns raw HTML for a URL or raises FetchError."""

    async def fetch(self, url: str, *, render: bool = False) -> str: ...


def needs_rendering(html: str) -> bool:
    """Return True when static HTML looks like a client-side-only page.

    Either the main region is missing or nearly empty, or an application
    shell root is present while the document carries almost no text.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    main = soup.find("main")
    if main is None or len(main.get_text().strip()) < MIN_STATIC_TEXT:
        return True
    has_shell = any(soup.select_one(selector) for selector in APP_SHELL_SELECTORS)
    body = soup.body or soup
    return has_shell and len(body.get_text().strip()) < MIN_STATIC_TEXT


def _derive_failure_reason(result: CrawlResult) -> str:
    if result.error_message:
        return result.error_message
    status_code = result.status_code or (result.metadata or {}).get("status_code")
    if status_code:
        return f"HTTP {status_code}"
    return "Renderer returned no content"


def _is_html(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return not content_type or "html" in content_type


class HttpFetcher:
    """Fetcher that escalates to a headless browser when static HTML is not enough.

    Use as an async context manager so the HTTP client and the browser are
    released together::

        async with HttpFetcher(site) as fetcher:
            html = await fetcher.fetch("https://ikas.dev/docs/intro")
    """

    def __init__(
        self,
        site: Optional[SiteSettings] = None,
        *,
        overrides: Optional[RunConfigOverrides] = None,
    ):
        self.site = site or SiteSettings()
        self.overrides = overrides
        self._client: Optional[httpx.AsyncClient] = None
        self._browser: Optional[AsyncWebCrawler] = None

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._browser is not None:
            await self._browser.__aexit__(None, None, None)
            self._browser = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "User-Agent": self.site.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml",
                },
                timeout=self.site.request_timeout,
                follow_redirects=True,
            )
        return self._client

    async def _get_browser(self) -> AsyncWebCrawler:
        if self._browser is None:
            browser_cfg = BrowserConfig(headless=True, user_agent=self.site.user_agent)
            crawler = AsyncWebCrawler(config=browser_cfg)
            await crawler.__aenter__()
            self._browser = crawler
        return self._browser

    async def fetch(self, url: str, *, render: bool = False) -> str:
        """Return the HTML of url, rendering it in a browser when needed."""
        if render or is_interactive_route(url, self.site):
            return await self.render(url)

        LOGGER.debug("Fetching: %s", url)
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"HTTP {exc.response.status_code}", url=url) from exc
        except httpx.HTTPError as exc:
            LOGGER.info("Lightweight fetch failed for %s (%s); rendering", url, exc)
            return await self.render(url)

        if not _is_html(response):
            return response.text

        html = response.text
        if needs_rendering(html):
            LOGGER.info("Page requires JavaScript rendering: %s", url)
            return await self.render(url)
        return html

    async def render(self, url: str) -> str:
        """Return the HTML of url after a headless browser rendered it."""
        LOGGER.debug("Rendering: %s", url)
        run_config = build_render_run_config(
            interactive=is_interactive_route(url, self.site),
            timeout=self.site.request_timeout,
            overrides=self.overrides,
        )
        try:
            browser = await self._get_browser()
            container = await browser.arun(url=url, config=run_config)
        except Exception as exc:
            raise FetchError(f"Rendering failed for {url}: {exc}", url=url) from exc

        try:
            result = container[0]
        except (IndexError, TypeError):
            result = container

        if result is None:
            raise FetchError(f"Renderer returned no results for {url}", url=url)
        if not result.success:
            raise FetchError(_derive_failure_reason(result), url=url)
        if result.status_code is not None and result.status_code >= 400:
            raise FetchError(_derive_failure_reason(result), url=url)

        html = result.html or result.cleaned_html or ""
        if not html:
            raise FetchError(f"Renderer returned empty HTML for {url}", url=url)
        return html
