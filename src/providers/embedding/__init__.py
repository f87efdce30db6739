"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning;
they are stored next to each document in ChromaDB and drive similarity
search at question time.

    OpenAIEmbeddingProvider -- text-embedding-ada-002 (1536 dims) by default.
"""

from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
