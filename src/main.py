"""ragLite FastAPI application entry point.

Wires together all providers, services, and routes via dependency
injection.  Loads configuration from ``.env`` and ``config/config.yaml``
and configures structured logging.

Providers are built inside the lifespan and stored on ``app.state``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.utils.concurrency import BackgroundTaskRunner
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
    app_env=settings.app_env,
)
_logger: structlog.BoundLogger = get_logger(__name__)

_APP_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    When the readiness probe fails, only the shared HTTP client and task
    runner are built and the service entries are ``None``.
    """
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.fetch_timeout_seconds),
        follow_redirects=True,
    )
    task_runner = BackgroundTaskRunner()

    components: dict[str, Any] = {
        "settings": app_settings,
        "config": app_config,
        "http_client": http_client,
        "task_runner": task_runner,
        "ai_available": app_settings.is_ai_available(),
        "document_store": None,
        "ingestion_service": None,
        "chat_service": None,
        "provider_registry": {},
    }

    if not components["ai_available"]:
        _logger.warning(
            "ai_features_disabled",
            missing=app_settings.get_missing_settings(),
        )
        return components

    from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
    from src.providers.fetcher.http_fetcher import HttpxContentFetcher
    from src.providers.llm.openai_provider import OpenAILLMProvider
    from src.providers.vector_store.chromadb_provider import ChromaDBDocumentStore
    from src.services.chat_service import ChatService
    from src.services.content_extractor import ContentExtractor
    from src.services.context_assembler import ContextAssembler
    from src.services.ingestion.ingestion_service import IngestionService
    from src.services.ingestion.metadata_extractor import MetadataExtractor

    llm = OpenAILLMProvider(settings=app_settings)
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    document_store = ChromaDBDocumentStore(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
    )
    fetcher = HttpxContentFetcher(http_client=http_client)

    retrieval_cfg = app_config.get("retrieval", {})
    metadata_cfg = app_config.get("metadata", {})

    metadata_extractor = MetadataExtractor(
        llm=llm,
        prefix_chars=metadata_cfg.get("prefix_chars", 1500),
        temperature=metadata_cfg.get("temperature", 0.2),
    )
    ingestion_service = IngestionService(
        fetcher=fetcher,
        extractor=ContentExtractor(),
        embedding_provider=embedding_provider,
        document_store=document_store,
        metadata_extractor=metadata_extractor,
        task_runner=task_runner,
        dedupe_by_source_url=app_settings.dedupe_by_source_url,
    )
    context_assembler = ContextAssembler(
        embedding_provider=embedding_provider,
        document_store=document_store,
        match_threshold=retrieval_cfg.get("match_threshold", 0.6),
        match_count=retrieval_cfg.get("match_count", 3),
    )
    chat_service = ChatService(llm=llm, context_assembler=context_assembler)

    components.update(
        {
            "llm": llm,
            "embedding_provider": embedding_provider,
            "document_store": document_store,
            "fetcher": fetcher,
            "ingestion_service": ingestion_service,
            "chat_service": chat_service,
            "provider_registry": {
                "llm": llm.get_provider_name(),
                "embedding": embedding_provider.get_provider_name(),
                "vector_store": document_store.get_provider_name(),
                "fetcher": fetcher.get_provider_name(),
            },
        }
    )
    _logger.info(
        "rag_enabled",
        embedding_provider=embedding_provider.get_provider_name(),
        vector_store="chromadb",
        persist_dir=app_settings.chromadb_persist_dir,
        collection=app_settings.chromadb_collection,
    )
    return components


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=_APP_VERSION,
        environment=settings.app_env,
        ai_available=components["ai_available"],
    )

    yield

    # -- Shutdown: let enrichment finish, then close the shared client --
    task_runner: BackgroundTaskRunner = components["task_runner"]
    if task_runner.pending:
        _logger.info("app_shutdown_waiting", pending=task_runner.pending)
    await task_runner.join()

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info(
        "app_shutdown",
        enrichment_completed=task_runner.completed,
        enrichment_failed=task_runner.failed,
    )


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="ragLite API",
        version=_APP_VERSION,
        description=(
            "Ingest web articles into a searchable knowledge base and chat with a "
            "language model that answers from the most relevant stored passages."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
