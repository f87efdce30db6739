"""Retrieval context assembly for chat turns.

Embeds the user's question, fetches the closest stored documents and
renders them into one text block for the system prompt:

    [3/14/2024 | 87% relevance]
    Source: Ithaca Voice by Jane Doe (https://ithacavoice.org/...)
    Categories: local news, education
    <document content>

Blocks are ordered newest document first and separated by a blank line.
Retrieval problems never fail the chat turn: an embedding or store error
yields an empty context and the model answers without it.
"""

from __future__ import annotations

import math

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.document import SearchResult
from src.utils.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_MATCH_THRESHOLD = 0.6
_DEFAULT_MATCH_COUNT = 3


class ContextAssembler:
    """Builds the retrieval context string for a query.

    Parameters
    ----------
    embedding_provider:
        Embeds the query (must be the provider used at ingestion time).
    document_store:
        Source of similarity matches.
    match_threshold:
        Minimum similarity (exclusive) for a document to be included.
    match_count:
        Maximum number of documents in the context.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        document_store: IDocumentStore,
        match_threshold: float = _DEFAULT_MATCH_THRESHOLD,
        match_count: int = _DEFAULT_MATCH_COUNT,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._document_store = document_store
        self._match_threshold = match_threshold
        self._match_count = match_count

    async def build_context(self, query: str) -> str:
        """Return the rendered context for *query*, or ``""``."""
        if not query.strip():
            return ""

        try:
            query_embedding = await self._embedding_provider.embed_single(query)
        except Exception as exc:  # noqa: BLE001
            logger.warning("context_embedding_failed", error=str(exc))
            return ""

        try:
            results = await self._document_store.similarity_search(
                query_embedding,
                threshold=self._match_threshold,
                limit=self._match_count,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("context_search_failed", error=str(exc))
            return ""

        context = self.render(results)
        logger.info(
            "context_assembled",
            results=len(results),
            context_chars=len(context),
        )
        return context

    @staticmethod
    def render(results: list[SearchResult]) -> str:
        """Render *results* newest first, one block per document."""
        ordered = sorted(results, key=lambda r: r.document.created_at, reverse=True)
        return "\n\n".join(_render_block(result) for result in ordered)


def _render_block(result: SearchResult) -> str:
    document = result.document
    meta = document.metadata

    created = document.created_at
    date_label = f"{created.month}/{created.day}/{created.year}"
    relevance = math.floor((result.similarity or 0.0) * 100 + 0.5)
    lines = [f"[{date_label} | {relevance}% relevance]"]

    publisher = meta.publisher_name if meta else None
    author = meta.author if meta else None
    if document.source_url or publisher:
        parts = ["Source:"]
        if publisher:
            parts.append(publisher)
        if author:
            parts.append(f"by {author}")
        if document.source_url:
            parts.append(f"({document.source_url})")
        lines.append(" ".join(parts))

    if meta and meta.categories:
        lines.append(f"Categories: {', '.join(meta.categories)}")

    lines.append(document.content)
    return "\n".join(lines)
