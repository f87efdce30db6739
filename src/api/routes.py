"""FastAPI API routes for ragLite.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.  When the model service is
not configured (see ``Settings.is_ai_available``) the services are absent
and every endpoint that needs them answers 503.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint                          Method  Description
# ───────────────────────────────────────────────────────────────────────
# /api/v1/health                    GET     Health check + readiness
# /api/v1/documents                 POST    Store raw text
# /api/v1/documents/url             POST    Ingest an article from a URL
# /api/v1/documents/search?q=       GET     Full-text search
# /api/v1/documents/{id}            GET     Read one document
# /api/v1/documents/{id}            DELETE  Delete a document
# /api/v1/chat/stream               POST    Streamed answer (text/plain)
# /api/v1/chat                      POST    Tool-augmented turn
# ───────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any, AsyncIterator

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from src.api.schemas import (
    AddDocumentRequest,
    AddUrlRequest,
    ChatMessageOut,
    ChatRequest,
    ChatResponse,
    DeleteResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    IngestionResponse,
    SearchResponse,
)
from src.models.chat import ChatMessage
from src.models.results import ErrorKind, IngestionResult, ServiceError
from src.services.chat_service import ChatService
from src.services.ingestion.ingestion_service import IngestionService
from src.utils.logging import get_logger
from src.utils.streamable import StreamableUI

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_APP_VERSION = "0.1.0"

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.FETCH_FAILED: 502,
    ErrorKind.NOT_HTML: 422,
    ErrorKind.EXTRACTION_EMPTY: 422,
    ErrorKind.EMPTY_CONTENT: 400,
    ErrorKind.EMBEDDING_FAILED: 502,
    ErrorKind.STORE_FAILED: 503,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE_SOURCE: 409,
}

_AI_UNAVAILABLE = "AI features are not configured (set OPENAI_API_KEY and the ChromaDB settings)"


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> IngestionService:
    service = getattr(request.app.state, "ingestion_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail=_AI_UNAVAILABLE)
    return service


def _get_chat_service(request: Request) -> ChatService:
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail=_AI_UNAVAILABLE)
    return service


IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
ChatDep = Annotated[ChatService, Depends(_get_chat_service)]


def _raise_for(error: ServiceError | None) -> None:
    if error is None:
        raise HTTPException(status_code=500, detail="Operation failed")
    raise HTTPException(status_code=_STATUS_BY_KIND.get(error.kind, 500), detail=error.message)


def _ingestion_response(result: IngestionResult) -> IngestionResponse:
    if not result.success or result.document is None:
        _raise_for(result.error)
    return IngestionResponse(success=True, document=DocumentResponse.from_document(result.document))


def _serialize_display(display: Any) -> dict[str, Any] | None:
    if not isinstance(display, StreamableUI):
        return None
    value = display.value
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, dict):
        return value
    return None if value is None else {"value": str(value)}


def _require_user_last(messages: list[ChatMessage]) -> None:
    if messages[-1].role != "user":
        raise HTTPException(
            status_code=422,
            detail="The last message of a conversation must come from the user",
        )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=IngestionResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Store raw text as a document",
)
async def add_document(body: AddDocumentRequest, service: IngestionDep) -> IngestionResponse:
    result = await service.add_document(body.content)
    return _ingestion_response(result)


@router.post(
    "/documents/url",
    response_model=IngestionResponse,
    status_code=201,
    responses={
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Ingest an article from a URL",
)
async def add_content_from_url(body: AddUrlRequest, service: IngestionDep) -> IngestionResponse:
    """Fetch the page, store its main text and schedule metadata enrichment.

    The response is returned before enrichment finishes, so ``metadata`` is
    normally ``null`` here; poll ``GET /documents/{id}`` to see it land.
    """
    result = await service.add_content_from_url(body.url)
    return _ingestion_response(result)


@router.get(
    "/documents/search",
    response_model=SearchResponse,
    summary="Full-text search over stored documents",
)
async def search_documents(
    service: IngestionDep,
    q: Annotated[str, Query(min_length=1, max_length=500)],
) -> SearchResponse:
    result = await service.search_documents(q)
    if result.error is not None:
        _raise_for(result.error)
    return SearchResponse(
        query=q,
        total=len(result.documents),
        documents=[DocumentResponse.from_document(d) for d in result.documents],
    )


@router.get(
    "/documents/{document_id}",
    response_model=DocumentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get one document",
)
async def get_document(document_id: str, service: IngestionDep) -> DocumentResponse:
    document = await service.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document '{document_id}' not found")
    return DocumentResponse.from_document(document)


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document",
)
async def delete_document(document_id: str, service: IngestionDep) -> DeleteResponse:
    result = await service.delete_document(document_id)
    if not result.success:
        _raise_for(result.error)
    return DeleteResponse(success=True, document_id=document_id)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat/stream",
    response_class=StreamingResponse,
    summary="Answer the latest user message as a text stream",
)
async def chat_stream(body: ChatRequest, service: ChatDep) -> StreamingResponse:
    messages = body.to_messages()
    _require_user_last(messages)

    # Retrieval and the model call run before the first fragment, so pulling
    # it here lets their failures reach the error middleware instead of a 200.
    fragments = service.stream_reply(messages)
    first = await anext(fragments, None)

    async def _body() -> AsyncIterator[str]:
        if first is None:
            return
        yield first
        async for fragment in fragments:
            yield fragment

    return StreamingResponse(
        _body(),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Run a tool-augmented chat turn",
)
async def chat(body: ChatRequest, service: ChatDep) -> ChatResponse:
    messages = body.to_messages()
    _require_user_last(messages)

    result = await service.respond_with_tools(messages)
    return ChatResponse(
        messages=[
            ChatMessageOut(
                role=m.role,
                content=m.content,
                display=_serialize_display(m.display),
            )
            for m in result.messages
        ]
    )


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return readiness plus the availability of each configured provider."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    ai_available = bool(getattr(request.app.state, "ai_available", False))

    document_store = getattr(request.app.state, "document_store", None)
    if document_store is not None:
        try:
            providers["documents"] = await document_store.count()
            providers["store"] = True
        except Exception:  # noqa: BLE001
            providers["store"] = False

    if ai_available and providers.get("store", False):
        status = "healthy"
    elif ai_available:
        status = "degraded"
    else:
        status = "unavailable"

    return HealthResponse(
        status=status,
        version=_APP_VERSION,
        ai_available=ai_available,
        providers=providers,
    )
