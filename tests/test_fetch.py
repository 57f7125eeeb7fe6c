"""Tests for docindex.fetch module."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from docindex.config import SiteSettings
from docindex.fetch import FetchError, HttpFetcher, needs_rendering

STATIC_HTML = f"<html><body><main><p>{'Static documentation text. ' * 10}</p></main></body></html>"
SHELL_HTML = "<html><body><div id='__next'></div></body></html>"
RENDERED_HTML = "<html><body><main>Rendered</main></body></html>"


def _response(
    url: str, text: str, content_type: str = "text/html; charset=utf-8", status: int = 200
):
    return httpx.Response(
        status,
        text=text,
        headers={"content-type": content_type},
        request=httpx.Request("GET", url),
    )


def _client(response=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=response, side_effect=side_effect)
    client.aclose = AsyncMock()
    return client


def _browser(
    html: str = RENDERED_HTML, success: bool = True, status_code: int = 200
) -> MagicMock:
    result = MagicMock()
    result.success = success
    result.status_code = status_code
    result.html = html
    result.cleaned_html = None
    result.error_message = None if success else "net::ERR_NAME_NOT_RESOLVED"

    browser = MagicMock()
    browser.__aenter__ = AsyncMock(return_value=browser)
    browser.__aexit__ = AsyncMock(return_value=None)
    browser.arun = AsyncMock(return_value=[result])
    return browser


class TestNeedsRendering:
    def test_static_page(self):
        assert not needs_rendering(STATIC_HTML)

    def test_missing_main(self):
        assert needs_rendering("<html><body><p>text</p></body></html>")

    def test_short_main(self):
        assert needs_rendering("<main>Loading...</main>")

    def test_app_shell_with_little_text(self):
        assert needs_rendering(SHELL_HTML)


class TestHttpFetcher:
    @pytest.mark.asyncio
    async def test_static_fetch(self):
        url = "https://ikas.dev/docs/intro"
        client = _client(_response(url, STATIC_HTML))
        browser = _browser()
        with patch("docindex.fetch.httpx.AsyncClient", return_value=client), patch(
            "docindex.fetch.AsyncWebCrawler", return_value=browser
        ):
            async with HttpFetcher(SiteSettings()) as fetcher:
                html = await fetcher.fetch(url)

        assert html == STATIC_HTML
        browser.arun.assert_not_awaited()
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_client_side_page_is_rendered(self):
        url = "https://ikas.dev/docs/intro"
        client = _client(_response(url, SHELL_HTML))
        browser = _browser()
        with patch("docindex.fetch.httpx.AsyncClient", return_value=client), patch(
            "docindex.fetch.AsyncWebCrawler", return_value=browser
        ):
            async with HttpFetcher() as fetcher:
                html = await fetcher.fetch(url)

        assert html == RENDERED_HTML
        browser.arun.assert_awaited_once()
        browser.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_http_error_falls_back_to_rendering(self):
        client = _client(side_effect=httpx.ConnectError("refused"))
        browser = _browser()
        with patch("docindex.fetch.httpx.AsyncClient", return_value=client), patch(
            "docindex.fetch.AsyncWebCrawler", return_value=browser
        ):
            async with HttpFetcher() as fetcher:
                html = await fetcher.fetch("https://ikas.dev/docs/intro")

        assert html == RENDERED_HTML

    @pytest.mark.asyncio
    async def test_http_status_error_is_a_failure(self):
        url = "https://ikas.dev/docs/missing"
        client = _client(_response(url, "<h1>Page Not Found</h1>", status=404))
        browser = _browser()
        with patch("docindex.fetch.httpx.AsyncClient", return_value=client), patch(
            "docindex.fetch.AsyncWebCrawler", return_value=browser
        ):
            async with HttpFetcher() as fetcher:
                with pytest.raises(FetchError, match="HTTP 404") as excinfo:
                    await fetcher.fetch(url)

        assert excinfo.value.url == url
        browser.arun.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_interactive_route_always_rendered(self):
        client = _client()
        browser = _browser()
        with patch("docindex.fetch.httpx.AsyncClient", return_value=client), patch(
            "docindex.fetch.AsyncWebCrawler", return_value=browser
        ):
            async with HttpFetcher() as fetcher:
                await fetcher.fetch("https://ikas.dev/playground")

        client.get.assert_not_awaited()
        config = browser.arun.await_args.kwargs["config"]
        assert config.delay_before_return_html == 2.0

    @pytest.mark.asyncio
    async def test_render_flag(self):
        client = _client()
        browser = _browser()
        with patch("docindex.fetch.httpx.AsyncClient", return_value=client), patch(
            "docindex.fetch.AsyncWebCrawler", return_value=browser
        ):
            async with HttpFetcher() as fetcher:
                await fetcher.fetch("https://ikas.dev/docs/intro", render=True)

        client.get.assert_not_awaited()
        browser.arun.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_html_returned_as_is(self):
        url = "https://ikas.dev/sitemap.xml"
        xml = "<urlset><url><loc>https://ikas.dev/docs/intro</loc></url></urlset>"
        client = _client(_response(url, xml, "application/xml"))
        browser = _browser()
        with patch("docindex.fetch.httpx.AsyncClient", return_value=client), patch(
            "docindex.fetch.AsyncWebCrawler", return_value=browser
        ):
            async with HttpFetcher() as fetcher:
                assert await fetcher.fetch(url) == xml

        browser.arun.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_render_failure_raises_fetch_error(self):
        browser = _browser(success=False)
        with patch("docindex.fetch.AsyncWebCrawler", return_value=browser):
            fetcher = HttpFetcher()
            with pytest.raises(FetchError, match="ERR_NAME_NOT_RESOLVED") as excinfo:
                await fetcher.render("https://ikas.dev/docs/missing")
            await fetcher.close()

        assert excinfo.value.url == "https://ikas.dev/docs/missing"

    @pytest.mark.asyncio
    async def test_rendered_error_status_raises_fetch_error(self):
        browser = _browser(html="<h1>Page Not Found</h1>", status_code=404)
        with patch("docindex.fetch.AsyncWebCrawler", return_value=browser):
            async with HttpFetcher() as fetcher:
                with pytest.raises(FetchError, match="HTTP 404"):
                    await fetcher.render("https://ikas.dev/docs/missing")

    @pytest.mark.asyncio
    async def test_empty_render_raises_fetch_error(self):
        browser = _browser(html="")
        with patch("docindex.fetch.AsyncWebCrawler", return_value=browser):
            async with HttpFetcher() as fetcher:
                with pytest.raises(FetchError, match="empty HTML"):
                    await fetcher.render("https://ikas.dev/docs/intro")

    @pytest.mark.asyncio
    async def test_browser_reused_across_renders(self):
        browser = _browser()
        with patch("docindex.fetch.AsyncWebCrawler", return_value=browser) as factory:
            async with HttpFetcher() as fetcher:
                await fetcher.render("https://ikas.dev/docs/a")
                await fetcher.render("https://ikas.dev/docs/b")

        assert factory.call_count == 1
        assert browser.arun.await_count == 2
