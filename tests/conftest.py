"""Shared pytest fixtures for the ragLite test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.content_fetcher import FetchedPage, IContentFetcher
from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider, ToolCompletion
from src.models.document import Document, DocumentMetadata, NamedEntities, SearchResult

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

ARTICLE_URL = "https://example.com/news/board-meeting"

ARTICLE_HTML = """\
<html>
  <head><title>Board meeting</title><script>var tracking = 1;</script></head>
  <body>
    <header>Site header</header>
    <nav><a href="/">Home</a></nav>
    <article>
      <h1>School board approves new budget</h1>
      <p>The school board voted five to two on Tuesday to approve the district's
         budget for the coming year, which includes funding for two new teachers.</p>
      <p>Superintendent Maria Lopez said the plan keeps class sizes stable.</p>
    </article>
    <aside class="related">Related stories</aside>
    <footer>Copyright</footer>
  </body>
</html>
"""

METADATA_JSON = """\
{
  "publisher_name": "Example News",
  "author": "Jane Doe",
  "named_entities": {
    "organizations": ["School Board"],
    "persons": ["Maria Lopez"],
    "locations": ["Springfield"],
    "dates": ["Tuesday"]
  },
  "categories": ["education", "local government"]
}"""


def make_document(
    doc_id: str = "doc-1",
    content: str = "The school board approved the budget.",
    source_url: str | None = ARTICLE_URL,
    created_at: datetime | None = None,
    metadata: DocumentMetadata | None = None,
    embedding: list[float] | None = None,
) -> Document:
    return Document(
        id=doc_id,
        content=content,
        embedding=embedding,
        source_url=source_url,
        created_at=created_at or datetime(2024, 3, 14, 12, 0, tzinfo=timezone.utc),
        metadata=metadata,
    )


def make_metadata(**overrides: Any) -> DocumentMetadata:
    values: dict[str, Any] = {
        "publisher_name": "Example News",
        "author": "Jane Doe",
        "named_entities": NamedEntities(persons=["Maria Lopez"]),
        "categories": ["education", "local government"],
    }
    values.update(overrides)
    return DocumentMetadata(**values)


def html_page(body: str = ARTICLE_HTML, url: str = ARTICLE_URL, **overrides: Any) -> FetchedPage:
    values: dict[str, Any] = {
        "url": url,
        "status_code": 200,
        "reason": "OK",
        "content_type": "text/html; charset=utf-8",
        "body": body,
    }
    values.update(overrides)
    return FetchedPage(**values)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm() -> MagicMock:
    """Mock model service returning the sample metadata JSON."""
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value=METADATA_JSON)
    llm.complete_with_tools = AsyncMock(return_value=ToolCompletion(text="Hello!"))
    llm.get_provider_name.return_value = "mock-llm"
    llm.is_available.return_value = True
    return llm


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    """Mock embedding provider with 4-dimensional vectors."""
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_single = AsyncMock(return_value=[0.1, 0.2, 0.3, 0.4])
    provider.embed = AsyncMock(return_value=[[0.1, 0.2, 0.3, 0.4]])
    provider.get_dimension.return_value = 4
    provider.get_provider_name.return_value = "mock-embedding"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_document_store() -> MagicMock:
    store = MagicMock(spec=IDocumentStore)
    store.insert = AsyncMock(
        side_effect=lambda draft: make_document(
            content=draft.content,
            source_url=draft.source_url,
            embedding=draft.embedding,
        )
    )
    store.update_metadata = AsyncMock(return_value=True)
    store.delete = AsyncMock(return_value=True)
    store.get = AsyncMock(return_value=None)
    store.full_text_search = AsyncMock(return_value=[])
    store.similarity_search = AsyncMock(return_value=[])
    store.find_by_source_url = AsyncMock(return_value=[])
    store.count = AsyncMock(return_value=0)
    store.get_provider_name.return_value = "mock-store"
    store.is_available.return_value = True
    return store


@pytest.fixture
def mock_fetcher() -> MagicMock:
    fetcher = MagicMock(spec=IContentFetcher)
    fetcher.fetch = AsyncMock(return_value=html_page())
    fetcher.get_provider_name.return_value = "mock-fetcher"
    fetcher.is_available.return_value = True
    return fetcher


@pytest.fixture
def sample_results() -> list[SearchResult]:
    older = make_document(
        doc_id="old",
        content="Older story about the library.",
        created_at=datetime(2024, 1, 5, tzinfo=timezone.utc),
    )
    newer = make_document(
        doc_id="new",
        content="Newer story about the school board.",
        created_at=datetime(2024, 3, 14, tzinfo=timezone.utc),
        metadata=make_metadata(),
    )
    return [
        SearchResult(document=older, similarity=0.91),
        SearchResult(document=newer, similarity=0.7349),
    ]


# ---------------------------------------------------------------------------
# Real ChromaDB store
# ---------------------------------------------------------------------------


@pytest.fixture
def chroma_store(tmp_path: Path):
    """A ChromaDBDocumentStore persisted under a temporary directory."""
    from src.providers.vector_store.chromadb_provider import ChromaDBDocumentStore

    return ChromaDBDocumentStore(
        persist_directory=str(tmp_path / "chromadb"),
        collection_name="test_documents",
    )
