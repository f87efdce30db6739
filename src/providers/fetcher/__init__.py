"""Content fetcher implementations.

    HttpxContentFetcher -- single-URL GET over a shared httpx.AsyncClient.
"""

from src.providers.fetcher.http_fetcher import HttpxContentFetcher

__all__ = ["HttpxContentFetcher"]
