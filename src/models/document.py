"""Knowledge-base data models.

Pydantic v2 models for stored documents, their model-extracted metadata and
similarity search results.  All models use frozen config; a new instance is
created whenever a document changes state (e.g. when metadata lands).

Document lifecycle:
    1. INSERT: the ingestion service hands a :class:`DocumentDraft` (content,
       embedding, source URL) to the store, which assigns ``id`` and
       ``created_at`` in the same write.
    2. ENRICH: later, a background task writes :class:`DocumentMetadata`
       keyed by ``id``.  Until then ``metadata is None``, which every
       reader must tolerate.
    3. DELETE: explicit, by ``id``; terminal.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NamedEntities(BaseModel):
    """Entities the model found in the first part of an article."""

    model_config = ConfigDict(frozen=True)

    organizations: list[str] = Field(default_factory=list)
    persons: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)


class DocumentMetadata(BaseModel):
    """Structured metadata attached to a document after ingestion.

    Every field is optional so a partial model answer still produces a
    usable record; shape errors are rejected earlier by the extractor.
    """

    model_config = ConfigDict(frozen=True)

    publisher_name: str | None = Field(default=None, description="Publication or site name.")
    author: str | None = Field(default=None, description="Article author, if stated.")
    named_entities: NamedEntities = Field(default_factory=NamedEntities)
    categories: list[str] = Field(
        default_factory=list,
        description="Two or three short topic labels.",
    )


class DocumentDraft(BaseModel):
    """Everything needed to insert a document; the store adds id and timestamp."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(min_length=1)
    embedding: list[float] | None = None
    source_url: str | None = None


class Document(BaseModel):
    """A stored unit of retrievable content."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Store-assigned identifier.")
    content: str = Field(min_length=1)
    embedding: list[float] | None = Field(default=None, repr=False)
    source_url: str | None = None
    created_at: datetime
    metadata: DocumentMetadata | None = None


class SearchResult(BaseModel):
    """A document returned by a similarity query, with its score."""

    model_config = ConfigDict(frozen=True)

    document: Document
    similarity: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Cosine similarity in [0, 1]; None for non-similarity queries.",
    )
