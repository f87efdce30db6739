"""ragLite domain models -- re-exports all public model classes.

Models are organized by concern:
    - document.py -- stored documents, metadata, similarity results
    - chat.py     -- conversation messages and tool parameter/view models
    - results.py  -- structured ingestion / management outcomes
"""

from __future__ import annotations

from src.models.chat import ChatMessage, ChatTurnResult, WeatherParams, WeatherView
from src.models.document import (
    Document,
    DocumentDraft,
    DocumentMetadata,
    NamedEntities,
    SearchResult,
)
from src.models.results import (
    DeleteResult,
    ErrorKind,
    IngestionResult,
    SearchDocumentsResult,
    ServiceError,
)

__all__ = [
    "ChatMessage",
    "ChatTurnResult",
    "DeleteResult",
    "Document",
    "DocumentDraft",
    "DocumentMetadata",
    "ErrorKind",
    "IngestionResult",
    "NamedEntities",
    "SearchDocumentsResult",
    "SearchResult",
    "ServiceError",
    "WeatherParams",
    "WeatherView",
]
