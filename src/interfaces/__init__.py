"""Public interface definitions for all external service providers.

Every external API or service ragLite talks to is accessed exclusively
through the abstract base classes defined here.  Concrete adapters live in
``src/providers/`` and are constructed and injected in ``src/main.py``.
Unit tests inject ``MagicMock(spec=...)`` fakes instead.

CONCRETE PROVIDER MAP:
    Interface            →  Concrete implementation (in src/providers/)
    ───────────────────────────────────────────────────────────────
    ILLMProvider         →  OpenAILLMProvider
    IEmbeddingProvider   →  OpenAIEmbeddingProvider
    IDocumentStore       →  ChromaDBDocumentStore
    IContentFetcher      →  HttpxContentFetcher
"""

from src.interfaces.content_fetcher import FetchedPage, IContentFetcher
from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider, ToolCall, ToolCompletion, ToolDefinition

__all__ = [
    "FetchedPage",
    "IContentFetcher",
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "ToolCall",
    "ToolCompletion",
    "ToolDefinition",
]
