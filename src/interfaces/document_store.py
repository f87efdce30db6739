"""Abstract base class for the document store gateway.

Defines the contract for persisting documents together with their
embeddings and for the two read paths the application needs: substring
(full-text) search and vector similarity search.  The concrete ChromaDB
gateway lives in ``src/providers/vector_store/``.

There are no cross-call transactions: an insert followed by a failed
metadata update leaves a valid, metadata-less document behind.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import Document, DocumentDraft, DocumentMetadata, SearchResult


# Concrete implementation: ChromaDBDocumentStore (src/providers/vector_store/)
class IDocumentStore(ABC):
    """Contract for document persistence and retrieval."""

    @abstractmethod
    async def insert(self, draft: DocumentDraft) -> Document:
        """Persist a new document and return it with ``id`` and ``created_at``.

        Raises
        ------
        ValueError
            If the draft's content is empty or whitespace.
        src.utils.errors.RAGError
            If the store write fails.
        """

    @abstractmethod
    async def update_metadata(self, document_id: str, metadata: DocumentMetadata) -> bool:
        """Attach *metadata* to an existing document.

        Only metadata keys are written; content, embedding and
        ``created_at`` are never touched.

        Returns
        -------
        bool
            ``True`` if the document existed and was updated, ``False`` if
            no document has that id.
        """

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        """Delete a document.  ``True`` if deleted, ``False`` if not found."""

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        """Return the document with *document_id*, or ``None``."""

    @abstractmethod
    async def full_text_search(self, query: str, limit: int | None = None) -> list[Document]:
        """Return documents whose content contains *query*.

        Results carry no similarity score.
        """

    @abstractmethod
    async def similarity_search(
        self,
        embedding: list[float],
        threshold: float = 0.6,
        limit: int = 3,
    ) -> list[SearchResult]:
        """Return the closest documents to *embedding*.

        Only results with similarity strictly above *threshold* are kept;
        never more than *limit*, ordered best first.
        """

    @abstractmethod
    async def find_by_source_url(self, source_url: str) -> list[Document]:
        """Return every document ingested from *source_url*."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored documents."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is initialised and reachable."""
