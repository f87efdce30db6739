"""Main-content extraction from raw article HTML.

Turns a fetched page into plain text suitable for embedding:

1. Parse with BeautifulSoup and drop boilerplate (scripts, navigation,
   headers/footers, sidebars, related links, comments, ads, share bars,
   embeds).
2. If the URL belongs to a publisher with a known layout, read the title
   and body from that layout's selectors.
3. Otherwise try a fixed list of common article containers and take the
   first with more than 100 characters of text, falling back to ``<body>``.
4. Normalize whitespace.

Extraction is best effort.  An empty string means "nothing usable"; it is
never a signal to retry, and this module never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

import structlog
from bs4 import BeautifulSoup, Comment
from bs4.element import Tag

from src.utils.text_normalizer import normalize_whitespace

logger = structlog.get_logger(logger_name=__name__)

_REMOVE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    "aside",
    ".site-header",
    ".site-footer",
    ".nav",
    ".menu",
    ".sidebar",
    ".related",
    ".comments",
    ".advertisement",
    ".ad",
    ".social-share",
    "iframe",
    "noscript",
)

_CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    ".article",
    ".post",
    ".entry-content",
    "main",
    "#main-content",
    ".main-content",
    ".article-content",
    ".post-content",
)

_MIN_CONTENT_CHARS = 100


@dataclass(frozen=True)
class SiteRule:
    """Selectors for a publisher whose layout defeats the generic heuristics."""

    title_selector: str
    body_selector: str


# Matched by substring against the URL hostname.
_SITE_RULES: dict[str, SiteRule] = {
    "ithacavoice.org": SiteRule(title_selector="h1.entry-title", body_selector=".entry-content"),
}


class ContentExtractor:
    """Extracts the readable main text of an article page."""

    def __init__(
        self,
        site_rules: dict[str, SiteRule] | None = None,
        min_content_chars: int = _MIN_CONTENT_CHARS,
    ) -> None:
        self._site_rules = dict(_SITE_RULES if site_rules is None else site_rules)
        self._min_content_chars = min_content_chars

    def extract(self, html: str, url: str = "") -> str:
        """Return cleaned plain text for *html*, or ``""``."""
        if not html or not html.strip():
            return ""

        try:
            soup = BeautifulSoup(html, "html.parser")
            self._strip_boilerplate(soup)

            content = self._extract_site_specific(soup, url)
            strategy = "site_rule"
            if not content:
                content, strategy = self._extract_generic(soup)
        except Exception as exc:  # noqa: BLE001
            logger.warning("html_parse_failed", url=url, error=str(exc))
            return ""

        logger.debug("content_extracted", url=url, strategy=strategy, chars=len(content))
        return content

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _strip_boilerplate(soup: BeautifulSoup) -> None:
        for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()

        for selector in _REMOVE_SELECTORS:
            for element in soup.select(selector):
                # Nested matches are already gone with their ancestor.
                if not element.decomposed:
                    element.decompose()

    def _extract_site_specific(self, soup: BeautifulSoup, url: str) -> str:
        hostname = (urlparse(url).hostname or "").lower() if url else ""
        if not hostname:
            return ""

        for host, rule in self._site_rules.items():
            if host not in hostname:
                continue

            body = soup.select_one(rule.body_selector)
            if body is None:
                return ""
            title = soup.select_one(rule.title_selector)
            title_text = normalize_whitespace(title.get_text()) if title is not None else ""
            body_text = normalize_whitespace(body.get_text())
            if not body_text:
                return ""
            return f"{title_text}\n\n{body_text}" if title_text else body_text

        return ""

    def _extract_generic(self, soup: BeautifulSoup) -> tuple[str, str]:
        for selector in _CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is None:
                continue
            text = normalize_whitespace(element.get_text())
            if len(text) > self._min_content_chars:
                return text, selector

        root: Tag | BeautifulSoup = soup.body if soup.body is not None else soup
        return normalize_whitespace(root.get_text()), "body"
