"""ChromaDB document store adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IDocumentStore`.
Each ragLite document is one ChromaDB record: the record id is the
document id, the record document is the content, the vector is the
pre-computed embedding, and flat metadata carries ``source_url``,
``created_at`` and (after enrichment) the extracted metadata fields.

ChromaDB metadata values must be str, int, float or bool, and ``None`` is
rejected, so absent fields are omitted and list-valued fields are stored
as JSON strings.
"""

from __future__ import annotations

import json
import os
import uuid
from datetime import datetime, timezone
from typing import Any

# Must be set before chromadb is imported for the env var to take effect.
os.environ.setdefault("ANONYMIZED_TELEMETRY", "False")

import chromadb
import structlog

from src.interfaces.document_store import IDocumentStore
from src.models.document import (
    Document,
    DocumentDraft,
    DocumentMetadata,
    NamedEntities,
    SearchResult,
)
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_INCLUDE_FULL = ["documents", "metadatas", "embeddings"]


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Stops ChromaDB from loading its default ONNX model.

    ragLite always passes pre-computed embeddings, so the collection's own
    embedding function must never run.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "ragLite uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBDocumentStore(IDocumentStore):
    """Document store backed by a cosine-distance ChromaDB collection."""

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "documents",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections created by older ChromaDB versions persist their own
        # embedding function and reject a different one.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, draft: DocumentDraft) -> Document:
        if not draft.content.strip():
            raise ValueError("Document content must not be empty")

        document = Document(
            id=uuid.uuid4().hex,
            content=draft.content,
            embedding=draft.embedding,
            source_url=draft.source_url,
            created_at=datetime.now(timezone.utc),
        )

        record: dict[str, Any] = {
            "ids": [document.id],
            "documents": [document.content],
            "metadatas": [self._base_metadata(document)],
        }
        if document.embedding is not None:
            record["embeddings"] = [document.embedding]

        try:
            self._collection.add(**record)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_insert",
            document_id=document.id,
            source_url=document.source_url,
            content_chars=len(document.content),
        )
        return document

    async def update_metadata(self, document_id: str, metadata: DocumentMetadata) -> bool:
        """Merge metadata keys into an existing record.

        ``collection.update()`` merges the given keys into the stored
        metadata, so ``source_url`` and ``created_at`` survive and the
        content and vector are left untouched.
        """
        try:
            existing = self._collection.get(ids=[document_id], include=["metadatas"])
            if not existing["ids"]:
                logger.warning("update_document_not_found", document_id=document_id)
                return False

            fields = self._metadata_to_fields(metadata)
            self._collection.update(ids=[document_id], metadatas=[fields])
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB update_metadata failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_update_metadata",
            document_id=document_id,
            fields=sorted(fields.keys()),
        )
        return True

    async def delete(self, document_id: str) -> bool:
        try:
            existing = self._collection.get(ids=[document_id], include=["metadatas"])
            if not existing["ids"]:
                return False
            self._collection.delete(ids=[document_id])
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_delete", document_id=document_id)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, document_id: str) -> Document | None:
        try:
            result = self._collection.get(ids=[document_id], include=_INCLUDE_FULL)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB get failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        documents = self._records_to_documents(result)
        return documents[0] if documents else None

    async def full_text_search(self, query: str, limit: int | None = None) -> list[Document]:
        """Case-insensitive substring match over content, newest first.

        ChromaDB's ``$contains`` filter is case-sensitive, so matching runs
        over the fetched records with ``str.casefold``.
        """
        if not query.strip():
            return []
        needle = query.casefold()

        try:
            result = self._collection.get(include=["documents", "metadatas"])
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB full_text_search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        documents = [
            d for d in self._records_to_documents(result) if needle in d.content.casefold()
        ]
        documents.sort(key=lambda d: d.created_at, reverse=True)
        if limit is not None:
            documents = documents[:limit]
        logger.info("chromadb_full_text_search", query=query, results=len(documents))
        return documents

    async def similarity_search(
        self,
        embedding: list[float],
        threshold: float = 0.6,
        limit: int = 3,
    ) -> list[SearchResult]:
        if limit <= 0:
            return []

        try:
            total = self._collection.count()
            if total == 0:
                return []

            results = self._collection.query(
                query_embeddings=[embedding],
                n_results=min(limit, total),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB similarity_search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = results["ids"][0] if results["ids"] else []
        if not ids:
            return []

        contents = results["documents"][0]
        metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(ids)
        distances = results["distances"][0]

        matches: list[SearchResult] = []
        for doc_id, content, meta, distance in zip(ids, contents, metadatas, distances, strict=True):
            # Cosine distance is in [0, 2]; clamp the derived similarity.
            similarity = max(0.0, min(1.0, 1.0 - float(distance)))
            if similarity <= threshold:
                continue
            matches.append(
                SearchResult(
                    document=self._record_to_document(doc_id, content, meta or {}),
                    similarity=similarity,
                )
            )

        logger.info(
            "chromadb_similarity_search",
            candidates=len(ids),
            results=len(matches),
            threshold=threshold,
        )
        return matches

    async def find_by_source_url(self, source_url: str) -> list[Document]:
        try:
            result = self._collection.get(
                where={"source_url": source_url},
                include=["documents", "metadatas"],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB find_by_source_url failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return self._records_to_documents(result)

    async def count(self) -> int:
        try:
            return self._collection.count()
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _base_metadata(document: Document) -> dict[str, str]:
        meta = {"created_at": document.created_at.isoformat()}
        if document.source_url:
            meta["source_url"] = document.source_url
        return meta

    @staticmethod
    def _metadata_to_fields(metadata: DocumentMetadata) -> dict[str, str | bool]:
        fields: dict[str, str | bool] = {
            "has_metadata": True,
            "named_entities": metadata.named_entities.model_dump_json(),
            "categories": json.dumps(metadata.categories),
        }
        if metadata.publisher_name:
            fields["publisher_name"] = metadata.publisher_name
        if metadata.author:
            fields["author"] = metadata.author
        return fields

    @staticmethod
    def _fields_to_metadata(meta: dict[str, Any]) -> DocumentMetadata | None:
        if not meta.get("has_metadata"):
            return None
        entities_raw = meta.get("named_entities")
        categories_raw = meta.get("categories")
        return DocumentMetadata(
            publisher_name=meta.get("publisher_name"),
            author=meta.get("author"),
            named_entities=(
                NamedEntities.model_validate_json(entities_raw) if entities_raw else NamedEntities()
            ),
            categories=json.loads(categories_raw) if categories_raw else [],
        )

    def _record_to_document(
        self,
        doc_id: str,
        content: str,
        meta: dict[str, Any],
        embedding: Any = None,
    ) -> Document:
        return Document(
            id=doc_id,
            content=content,
            embedding=[float(x) for x in embedding] if embedding is not None else None,
            source_url=meta.get("source_url"),
            created_at=datetime.fromisoformat(meta["created_at"]),
            metadata=self._fields_to_metadata(meta),
        )

    def _records_to_documents(self, result: dict[str, Any]) -> list[Document]:
        ids = result.get("ids") or []
        if not ids:
            return []
        contents = result.get("documents") or [""] * len(ids)
        metadatas = result.get("metadatas") or [{}] * len(ids)
        embeddings = result.get("embeddings")
        if embeddings is None:
            embeddings = [None] * len(ids)

        return [
            self._record_to_document(doc_id, content, meta or {}, emb)
            for doc_id, content, meta, emb in zip(ids, contents, metadatas, embeddings, strict=True)
        ]
