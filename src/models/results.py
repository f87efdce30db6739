"""Structured outcomes for ingestion and document-management operations.

Ingestion never raises for expected failures (bad URL, non-HTML page, empty
extraction, embedding/store outage).  It returns a result carrying an
:class:`ErrorKind` so HTTP and CLI callers can branch on the kind and show
the message as-is.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from src.models.document import Document


class ErrorKind(str, Enum):
    FETCH_FAILED = "fetch_failed"
    NOT_HTML = "not_html"
    EXTRACTION_EMPTY = "extraction_empty"
    EMPTY_CONTENT = "empty_content"
    EMBEDDING_FAILED = "embedding_failed"
    STORE_FAILED = "store_failed"
    NOT_FOUND = "not_found"
    DUPLICATE_SOURCE = "duplicate_source"


class ServiceError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str


class IngestionResult(BaseModel):
    """Outcome of adding a document (from a URL or raw text)."""

    model_config = ConfigDict(frozen=True)

    success: bool
    document: Document | None = None
    error: ServiceError | None = None

    @classmethod
    def ok(cls, document: Document) -> IngestionResult:
        return cls(success=True, document=document)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> IngestionResult:
        return cls(success=False, error=ServiceError(kind=kind, message=message))


class DeleteResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    error: ServiceError | None = None


class SearchDocumentsResult(BaseModel):
    """Full-text search outcome; ``documents`` is empty on error."""

    model_config = ConfigDict(frozen=True)

    documents: list[Document] = []
    error: ServiceError | None = None
