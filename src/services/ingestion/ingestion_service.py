"""Coordinator for adding documents to the knowledge base.

URL pipeline: **fetch -> extract -> embed -> store -> enrich (detached)**.

The :class:`IngestionService` coordinates its collaborators (content
fetcher, content extractor, embedding provider, document store, metadata
extractor) without any of them knowing about each other:

    1. IContentFetcher -- GET the URL with a browser-like header profile
    2. ContentExtractor -- HTML -> cleaned main text
    3. IEmbeddingProvider -- one vector for the whole text
    4. IDocumentStore -- insert content + vector + source URL in one write
    5. MetadataExtractor -- spawned on the BackgroundTaskRunner; writes
       publisher/author/entities/categories onto the stored document later

Expected failures in steps 1-4 come back as a structured
:class:`IngestionResult` and nothing is persisted.  Step 5 never affects
the result: the caller gets the document before enrichment runs, and a
failed enrichment is only logged.

All dependencies are injected via the constructor.
"""

from __future__ import annotations

from urllib.parse import urlparse

import structlog

from src.interfaces.content_fetcher import IContentFetcher
from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.document import Document, DocumentDraft
from src.models.results import (
    DeleteResult,
    ErrorKind,
    IngestionResult,
    SearchDocumentsResult,
    ServiceError,
)
from src.services.content_extractor import ContentExtractor
from src.services.ingestion.metadata_extractor import MetadataExtractor
from src.utils.concurrency import BackgroundTaskRunner
from src.utils.errors import FetchError, RagLiteError

logger = structlog.get_logger(logger_name=__name__)

# Some publishers serve a bot wall to obvious non-browser clients.
_BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Ch-Ua": '"Not A(Brand";v="99", "Google Chrome";v="121", "Chromium";v="121"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


def browser_headers(url: str) -> dict[str, str]:
    """Browser-like request headers for *url*, with its origin as Referer."""
    headers = dict(_BROWSER_HEADERS)
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        headers["Referer"] = f"{parsed.scheme}://{parsed.netloc}"
    return headers


class IngestionService:
    """Adds, removes and searches documents.

    Parameters
    ----------
    fetcher:
        Retrieves URLs.
    extractor:
        Turns HTML into plain text.
    embedding_provider:
        Embeds document text (same provider as query-time retrieval).
    document_store:
        Persists documents.
    metadata_extractor:
        Produces metadata for the detached enrichment step.
    task_runner:
        Owns the enrichment tasks.
    dedupe_by_source_url:
        Reject a URL that is already stored instead of inserting it again.
    """

    def __init__(
        self,
        fetcher: IContentFetcher,
        extractor: ContentExtractor,
        embedding_provider: IEmbeddingProvider,
        document_store: IDocumentStore,
        metadata_extractor: MetadataExtractor,
        task_runner: BackgroundTaskRunner,
        dedupe_by_source_url: bool = False,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._embedding_provider = embedding_provider
        self._document_store = document_store
        self._metadata_extractor = metadata_extractor
        self._task_runner = task_runner
        self._dedupe_by_source_url = dedupe_by_source_url

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def add_content_from_url(self, url: str) -> IngestionResult:
        """Fetch *url*, store its main text, and schedule metadata enrichment."""
        url = url.strip()
        log = logger.bind(url=url)

        try:
            page = await self._fetcher.fetch(url, headers=browser_headers(url))
        except FetchError as exc:
            log.warning("ingest_fetch_failed", error=str(exc))
            return IngestionResult.fail(ErrorKind.FETCH_FAILED, exc.message)

        if not page.ok:
            message = f"Failed to fetch URL: {page.status_code} {page.reason}".rstrip()
            log.warning("ingest_fetch_rejected", status=page.status_code)
            return IngestionResult.fail(ErrorKind.FETCH_FAILED, message)

        if "text/html" not in page.content_type.lower():
            log.warning("ingest_not_html", content_type=page.content_type)
            return IngestionResult.fail(ErrorKind.NOT_HTML, "URL does not return HTML content")

        if not page.body.strip():
            log.warning("ingest_empty_body")
            return IngestionResult.fail(ErrorKind.FETCH_FAILED, "Could not fetch content from URL")

        content = self._extractor.extract(page.body, url)
        if not content:
            log.warning("ingest_extraction_empty")
            return IngestionResult.fail(
                ErrorKind.EXTRACTION_EMPTY, "Could not extract readable content from URL"
            )

        if self._dedupe_by_source_url:
            duplicate = await self._check_duplicate(url)
            if duplicate is not None:
                return duplicate

        result = await self._embed_and_store(content, source_url=url)
        if result.success and result.document is not None:
            self._schedule_enrichment(result.document)
            log.info(
                "ingest_url_complete",
                document_id=result.document.id,
                content_chars=len(content),
            )
        return result

    async def add_document(self, content: str) -> IngestionResult:
        """Store raw text entered by a user.

        The text is embedded like fetched articles so that it can be found by
        similarity search; no metadata enrichment is scheduled.
        """
        if not content or not content.strip():
            return IngestionResult.fail(ErrorKind.EMPTY_CONTENT, "Document content must not be empty")

        result = await self._embed_and_store(content.strip(), source_url=None)
        if result.success and result.document is not None:
            logger.info("ingest_text_complete", document_id=result.document.id)
        return result

    async def delete_document(self, document_id: str) -> DeleteResult:
        try:
            deleted = await self._document_store.delete(document_id)
        except RagLiteError as exc:
            logger.error("delete_failed", document_id=document_id, error=str(exc))
            return DeleteResult(
                success=False,
                error=ServiceError(kind=ErrorKind.STORE_FAILED, message=exc.message),
            )

        if not deleted:
            return DeleteResult(
                success=False,
                error=ServiceError(
                    kind=ErrorKind.NOT_FOUND, message=f"Document '{document_id}' not found"
                ),
            )
        logger.info("document_deleted", document_id=document_id)
        return DeleteResult(success=True)

    async def search_documents(self, query: str) -> SearchDocumentsResult:
        """Full-text search over stored content."""
        try:
            documents = await self._document_store.full_text_search(query)
        except RagLiteError as exc:
            logger.error("full_text_search_failed", query=query, error=str(exc))
            return SearchDocumentsResult(
                error=ServiceError(kind=ErrorKind.STORE_FAILED, message=exc.message),
            )
        return SearchDocumentsResult(documents=documents)

    async def get_document(self, document_id: str) -> Document | None:
        return await self._document_store.get(document_id)

    async def wait_for_enrichment(self) -> None:
        """Block until every scheduled enrichment task has finished."""
        await self._task_runner.join()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_and_store(self, content: str, source_url: str | None) -> IngestionResult:
        try:
            embedding = await self._embedding_provider.embed_single(content)
        except RagLiteError as exc:
            logger.error("ingest_embedding_failed", source_url=source_url, error=str(exc))
            return IngestionResult.fail(ErrorKind.EMBEDDING_FAILED, exc.message)

        try:
            document = await self._document_store.insert(
                DocumentDraft(content=content, embedding=embedding, source_url=source_url)
            )
        except RagLiteError as exc:
            logger.error("ingest_store_failed", source_url=source_url, error=str(exc))
            return IngestionResult.fail(ErrorKind.STORE_FAILED, exc.message)

        return IngestionResult.ok(document)

    async def _check_duplicate(self, url: str) -> IngestionResult | None:
        try:
            existing = await self._document_store.find_by_source_url(url)
        except RagLiteError as exc:
            logger.error("ingest_dedupe_lookup_failed", url=url, error=str(exc))
            return IngestionResult.fail(ErrorKind.STORE_FAILED, exc.message)

        if existing:
            logger.info("ingest_duplicate_source", url=url, document_id=existing[0].id)
            return IngestionResult.fail(
                ErrorKind.DUPLICATE_SOURCE, f"URL already ingested as document '{existing[0].id}'"
            )
        return None

    def _schedule_enrichment(self, document: Document) -> None:
        self._task_runner.spawn(
            self._enrich_metadata(document.id, document.content, document.source_url),
            name=f"metadata:{document.id}",
        )

    async def _enrich_metadata(
        self, document_id: str, content: str, source_url: str | None
    ) -> None:
        """Extract metadata and attach it to the stored document.

        Failures are logged and dropped; the document keeps ``metadata=None``.
        """
        try:
            metadata = await self._metadata_extractor.extract(content, source_url)
            updated = await self._document_store.update_metadata(document_id, metadata)
        except RagLiteError as exc:
            logger.warning(
                "metadata_enrichment_failed",
                document_id=document_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return

        if not updated:
            # Deleted between insert and enrichment.
            logger.warning("metadata_enrichment_orphaned", document_id=document_id)
            return
        logger.info("metadata_updated", document_id=document_id)
