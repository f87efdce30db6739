"""Pydantic request/response schemas for the ragLite API.

These models define the shape of every HTTP request and response body.
FastAPI uses them to validate incoming JSON (invalid requests get a 422),
to serialize responses via ``response_model=...``, and to generate the
OpenAPI docs at ``/docs``.

Convention: request schemas end with "Request", response schemas end with
"Response".
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from src.models.chat import ChatMessage
from src.models.document import Document, DocumentMetadata


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    ai_available: bool
    providers: dict[str, Any]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class AddDocumentRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Raw text to store.")


class AddUrlRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048, description="Article URL to ingest.")


class DocumentResponse(BaseModel):
    """A stored document without its embedding vector."""

    id: str
    content: str
    source_url: str | None = None
    created_at: datetime
    metadata: DocumentMetadata | None = None

    @classmethod
    def from_document(cls, document: Document) -> DocumentResponse:
        return cls(
            id=document.id,
            content=document.content,
            source_url=document.source_url,
            created_at=document.created_at,
            metadata=document.metadata,
        )


class IngestionResponse(BaseModel):
    success: bool
    document: DocumentResponse


class DeleteResponse(BaseModel):
    success: bool
    document_id: str


class SearchResponse(BaseModel):
    query: str
    total: int
    documents: list[DocumentResponse]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatMessageIn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """A conversation whose last message is the user's new question."""

    messages: list[ChatMessageIn] = Field(..., min_length=1)

    def to_messages(self) -> list[ChatMessage]:
        return [ChatMessage(role=m.role, content=m.content) for m in self.messages]


class ChatMessageOut(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    display: dict[str, Any] | None = Field(
        default=None,
        description="Final render value of a tool's output, when a tool ran.",
    )


class ChatResponse(BaseModel):
    messages: list[ChatMessageOut]
