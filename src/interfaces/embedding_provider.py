"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-length vectors.  The same
provider embeds documents at ingestion time and queries at retrieval time;
mixing providers between the two breaks similarity scores.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIEmbeddingProvider (src/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Inputs longer than the
            model's limit are truncated by the implementation.

        Returns
        -------
        list[list[float]]
            Vectors corresponding positionally to *texts*, each of length
            :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.RAGError
            If the embedding API call fails.  No empty-vector fallback.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Embed one text (a query or a whole document)."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai-text-embedding-ada-002"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""
