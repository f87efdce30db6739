"""httpx-backed content fetcher.

Issues one GET per call, follows redirects and returns the response
untouched.  Interpreting the status code and content type is left to the
ingestion service so it can report the exact failure to the user.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.content_fetcher import FetchedPage, IContentFetcher
from src.utils.errors import FetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0


class HttpxContentFetcher(IContentFetcher):
    """Fetches web pages with an ``httpx.AsyncClient``.

    A client can be injected (shared with the rest of the app, or a
    ``MockTransport`` client in tests); otherwise one is created and owned
    by this fetcher and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    async def fetch(self, url: str, headers: dict[str, str] | None = None) -> FetchedPage:
        try:
            response = await self._client.get(url, headers=headers)
        except httpx.TimeoutException as exc:
            raise FetchError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.InvalidURL as exc:
            raise FetchError(
                message=f"Invalid URL {url!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        page = FetchedPage(
            url=str(response.url),
            status_code=response.status_code,
            reason=response.reason_phrase,
            content_type=response.headers.get("content-type", ""),
            body=response.text,
        )
        logger.info(
            "page_fetched",
            url=url,
            status=page.status_code,
            content_type=page.content_type,
            body_chars=len(page.body),
        )
        return page

    def is_available(self) -> bool:
        """Always available -- no credentials required."""
        return True

    def get_provider_name(self) -> str:
        return "httpx"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
