"""Abstract base class for fetching web pages.

The fetcher only moves bytes: it does not interpret the HTTP status or the
content type.  The ingestion service decides what counts as a usable page.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FetchedPage:
    """Raw response for a fetched URL.

    Attributes
    ----------
    url:
        Final URL after redirects.
    status_code:
        HTTP status code.
    reason:
        HTTP reason phrase (e.g. ``"Not Found"``).
    content_type:
        Value of the ``Content-Type`` header, ``""`` when absent.
    body:
        Decoded response body.
    """

    url: str
    status_code: int
    reason: str = ""
    content_type: str = ""
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class IContentFetcher(ABC):
    """Contract for retrieving a single URL."""

    @abstractmethod
    async def fetch(self, url: str, headers: dict[str, str] | None = None) -> FetchedPage:
        """GET *url* with *headers* and return the response as-is.

        Raises
        ------
        src.utils.errors.FetchError
            On transport failures (DNS, TLS, connect/read timeout, invalid
            URL).  Non-2xx responses are returned, not raised.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"httpx"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the fetcher can make requests."""
