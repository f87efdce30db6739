"""Document store implementations.

ChromaDB is the sole implementation.  It keeps each document's content,
embedding and flat metadata in one persistent collection and supports
cosine-similarity and substring queries.  Data persists at
CHROMADB_PERSIST_DIR (default: ./data/chromadb).
"""

from src.providers.vector_store.chromadb_provider import ChromaDBDocumentStore

__all__ = ["ChromaDBDocumentStore"]
