"""Unit tests for HttpxContentFetcher using httpx.MockTransport."""

from __future__ import annotations

import gzip

import brotli
import httpx
import pytest

from src.providers.fetcher.http_fetcher import HttpxContentFetcher
from src.services.content_extractor import ContentExtractor
from src.services.ingestion.ingestion_service import browser_headers
from src.utils.errors import FetchError
from tests.conftest import ARTICLE_HTML, ARTICLE_URL


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


class TestHttpxContentFetcher:
    @pytest.mark.asyncio
    async def test_fetch_html(self) -> None:
        seen_headers: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen_headers.update(request.headers)
            return httpx.Response(
                200,
                headers={"content-type": "text/html; charset=utf-8"},
                text="<html><body>Hello</body></html>",
            )

        fetcher = HttpxContentFetcher(http_client=_client(handler))
        page = await fetcher.fetch("https://example.com/a", headers={"User-Agent": "test-agent"})

        assert page.ok is True
        assert page.status_code == 200
        assert page.reason == "OK"
        assert page.content_type.startswith("text/html")
        assert "Hello" in page.body
        assert seen_headers["user-agent"] == "test-agent"

    @pytest.mark.asyncio
    async def test_non_2xx_is_returned_not_raised(self) -> None:
        fetcher = HttpxContentFetcher(
            http_client=_client(lambda request: httpx.Response(404, text="missing"))
        )
        page = await fetcher.fetch("https://example.com/missing")

        assert page.ok is False
        assert page.status_code == 404
        assert page.reason == "Not Found"

    @pytest.mark.asyncio
    async def test_follows_redirects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://example.com/new"})
            return httpx.Response(200, headers={"content-type": "text/html"}, text="moved")

        fetcher = HttpxContentFetcher(http_client=_client(handler))
        page = await fetcher.fetch("https://example.com/old")

        assert page.url == "https://example.com/new"
        assert page.body == "moved"

    @pytest.mark.asyncio
    async def test_connect_error_becomes_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed", request=request)

        fetcher = HttpxContentFetcher(http_client=_client(handler))
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("https://nowhere.invalid/")
        assert exc_info.value.provider_name == "httpx"

    @pytest.mark.asyncio
    async def test_timeout_becomes_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        fetcher = HttpxContentFetcher(http_client=_client(handler))
        with pytest.raises(FetchError, match="Timeout"):
            await fetcher.fetch("https://example.com/slow")

    @pytest.mark.asyncio
    async def test_malformed_url_becomes_fetch_error(self) -> None:
        fetcher = HttpxContentFetcher(
            http_client=_client(lambda request: httpx.Response(200))
        )
        with pytest.raises(FetchError):
            await fetcher.fetch("https://example.com/\x00bad")

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self) -> None:
        client = _client(lambda request: httpx.Response(200))
        fetcher = HttpxContentFetcher(http_client=client)
        await fetcher.aclose()
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_owned_client(self) -> None:
        fetcher = HttpxContentFetcher(timeout=5.0)
        await fetcher.aclose()
        assert fetcher._client.is_closed is True

    def test_provider_metadata(self) -> None:
        fetcher = HttpxContentFetcher(http_client=_client(lambda request: httpx.Response(200)))
        assert fetcher.get_provider_name() == "httpx"
        assert fetcher.is_available() is True

    @pytest.mark.asyncio
    async def test_brotli_body_is_decoded(self) -> None:
        seen_headers: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen_headers.update(request.headers)
            return httpx.Response(
                200,
                headers={"content-type": "text/html; charset=utf-8", "content-encoding": "br"},
                content=brotli.compress(ARTICLE_HTML.encode("utf-8")),
            )

        fetcher = HttpxContentFetcher(http_client=_client(handler))
        page = await fetcher.fetch(ARTICLE_URL, headers=browser_headers(ARTICLE_URL))
        text = ContentExtractor().extract(page.body, page.url)

        assert "br" in seen_headers["accept-encoding"]
        assert "School board approves new budget" in text
        assert "\x1b" not in page.body

    @pytest.mark.asyncio
    async def test_gzip_body_is_decoded(self) -> None:
        fetcher = HttpxContentFetcher(
            http_client=_client(
                lambda request: httpx.Response(
                    200,
                    headers={"content-type": "text/html", "content-encoding": "gzip"},
                    content=gzip.compress(b"<html><body>plain</body></html>"),
                )
            )
        )
        page = await fetcher.fetch("https://example.com/gz")
        assert page.body == "<html><body>plain</body></html>"
