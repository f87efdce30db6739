"""Standalone CLI for managing and querying the ragLite knowledge base.

Usage::

    python -m src.cli.ingest url --url https://ithacavoice.org/2024/03/story/
    python -m src.cli.ingest text --content "Board meeting moved to Thursday."
    python -m src.cli.ingest delete --id 3f2c9d...
    python -m src.cli.ingest search --query "school board"
    python -m src.cli.ingest ask --question "What did the board decide?"
    python -m src.cli.ingest stats

``url`` waits for background metadata enrichment to finish before exiting,
so the printed summary reflects whether enrichment succeeded.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from src.config.loader import load_config
from src.config.settings import Settings
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

_logger = get_logger(__name__)


def _build_services(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct the providers and services the commands need.

    Imports are deferred so ``--help`` stays fast.
    """
    from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
    from src.providers.fetcher.http_fetcher import HttpxContentFetcher
    from src.providers.llm.openai_provider import OpenAILLMProvider
    from src.providers.vector_store.chromadb_provider import ChromaDBDocumentStore
    from src.services.chat_service import ChatService
    from src.services.content_extractor import ContentExtractor
    from src.services.context_assembler import ContextAssembler
    from src.services.ingestion.ingestion_service import IngestionService
    from src.services.ingestion.metadata_extractor import MetadataExtractor
    from src.utils.concurrency import BackgroundTaskRunner

    llm = OpenAILLMProvider(settings=app_settings)
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    document_store = ChromaDBDocumentStore(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
    )
    fetcher = HttpxContentFetcher(timeout=app_settings.fetch_timeout_seconds)
    task_runner = BackgroundTaskRunner()

    retrieval_cfg = app_config.get("retrieval", {})
    metadata_cfg = app_config.get("metadata", {})

    ingestion_service = IngestionService(
        fetcher=fetcher,
        extractor=ContentExtractor(),
        embedding_provider=embedding_provider,
        document_store=document_store,
        metadata_extractor=MetadataExtractor(
            llm=llm,
            prefix_chars=metadata_cfg.get("prefix_chars", 1500),
            temperature=metadata_cfg.get("temperature", 0.2),
        ),
        task_runner=task_runner,
        dedupe_by_source_url=app_settings.dedupe_by_source_url,
    )
    chat_service = ChatService(
        llm=llm,
        context_assembler=ContextAssembler(
            embedding_provider=embedding_provider,
            document_store=document_store,
            match_threshold=retrieval_cfg.get("match_threshold", 0.6),
            match_count=retrieval_cfg.get("match_count", 3),
        ),
    )
    return {
        "ingestion_service": ingestion_service,
        "chat_service": chat_service,
        "document_store": document_store,
        "fetcher": fetcher,
        "task_runner": task_runner,
    }


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_url(args: argparse.Namespace, services: dict[str, Any]) -> int:
    service = services["ingestion_service"]
    try:
        result = await service.add_content_from_url(args.url)
        if not result.success:
            print(f"Error ({result.error.kind.value}): {result.error.message}", file=sys.stderr)
            return 1

        document = result.document
        print(f"Stored document {document.id} ({len(document.content)} chars)")

        await service.wait_for_enrichment()
        enriched = await service.get_document(document.id)
        if enriched is not None and enriched.metadata is not None:
            meta = enriched.metadata
            print(f"  Publisher:  {meta.publisher_name or '-'}")
            print(f"  Author:     {meta.author or '-'}")
            print(f"  Categories: {', '.join(meta.categories) or '-'}")
        else:
            print("  Metadata extraction did not complete; see logs.")
        return 0
    finally:
        await services["fetcher"].aclose()


async def _handle_text(args: argparse.Namespace, services: dict[str, Any]) -> int:
    result = await services["ingestion_service"].add_document(args.content)
    if not result.success:
        print(f"Error ({result.error.kind.value}): {result.error.message}", file=sys.stderr)
        return 1
    print(f"Stored document {result.document.id}")
    return 0


async def _handle_delete(args: argparse.Namespace, services: dict[str, Any]) -> int:
    result = await services["ingestion_service"].delete_document(args.id)
    if not result.success:
        print(f"Error ({result.error.kind.value}): {result.error.message}", file=sys.stderr)
        return 1
    print(f"Deleted document {args.id}")
    return 0


async def _handle_search(args: argparse.Namespace, services: dict[str, Any]) -> int:
    result = await services["ingestion_service"].search_documents(args.query)
    if result.error is not None:
        print(f"Error ({result.error.kind.value}): {result.error.message}", file=sys.stderr)
        return 1

    print(f"{len(result.documents)} document(s) match {args.query!r}")
    for document in result.documents:
        preview = document.content[:100].replace("\n", " ")
        source = document.source_url or "manual entry"
        print(f"  {document.id}  [{source}]  {preview}")
    return 0


async def _handle_ask(args: argparse.Namespace, services: dict[str, Any]) -> int:
    from src.models.chat import ChatMessage

    messages = [ChatMessage(role="user", content=args.question)]
    async for fragment in services["chat_service"].stream_reply(messages):
        sys.stdout.write(fragment)
        sys.stdout.flush()
    sys.stdout.write("\n")
    return 0


async def _handle_stats(services: dict[str, Any]) -> int:
    count = await services["document_store"].count()
    print(f"Documents stored: {count}")
    return 0


# ---------------------------------------------------------------------------
# Parser / entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Manage and query the ragLite knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    url_parser = subparsers.add_parser("url", help="Ingest an article from a URL")
    url_parser.add_argument("--url", required=True, help="Article URL")

    text_parser = subparsers.add_parser("text", help="Store raw text as a document")
    text_parser.add_argument("--content", required=True, help="Document text")

    delete_parser = subparsers.add_parser("delete", help="Delete a document by id")
    delete_parser.add_argument("--id", required=True, help="Document id")

    search_parser = subparsers.add_parser("search", help="Full-text search")
    search_parser.add_argument("--query", required=True, help="Substring to look for")

    ask_parser = subparsers.add_parser("ask", help="Ask a question over the knowledge base")
    ask_parser.add_argument("--question", required=True, help="Question text")

    subparsers.add_parser("stats", help="Show document count")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)

    if not app_settings.is_ai_available():
        missing = ", ".join(app_settings.get_missing_settings())
        print(f"Error: AI features are not configured (missing: {missing})", file=sys.stderr)
        return 2

    try:
        app_config = load_config(settings=app_settings)
    except ConfigurationError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2

    services = _build_services(app_settings, app_config)
    _logger.info("cli_command", command=args.command)

    handlers = {
        "url": _handle_url,
        "text": _handle_text,
        "delete": _handle_delete,
        "search": _handle_search,
        "ask": _handle_ask,
    }
    if args.command == "stats":
        return asyncio.run(_handle_stats(services))
    return asyncio.run(handlers[args.command](args, services))


if __name__ == "__main__":
    sys.exit(main())
