"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Whole articles are embedded as one vector, so inputs are truncated to the
model's token window (tiktoken) before the call.  Errors are wrapped in
:class:`RAGError`; there is no empty-vector fallback.
"""

from __future__ import annotations

import openai
import structlog
import tiktoken

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_OPENAI_BATCH_LIMIT = 2048

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}

# Maximum input tokens per model; unknown models get the OpenAI default.
_MODEL_MAX_TOKENS: dict[str, int] = {
    "text-embedding-ada-002": 8191,
    "text-embedding-3-small": 8191,
    "text-embedding-3-large": 8191,
}
_DEFAULT_MAX_TOKENS = 8191

# BPE used by ada-002 and the text-embedding-3 family.
_DEFAULT_ENCODING = "cl100k_base"


def _encoding_for(model: str) -> tiktoken.Encoding:
    """Tokenizer for *model*; unknown (compatible-server) models use cl100k_base."""
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding(_DEFAULT_ENCODING)


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-ada-002`` (1536 dims) by default.  Batches inputs
    above the per-call limit.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key

        if client is None:
            client_kwargs: dict = {"api_key": self._api_key}
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)

        self._client = client
        self._model = settings.openai_embedding_model or "text-embedding-ada-002"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._max_tokens = _MODEL_MAX_TOKENS.get(self._model, _DEFAULT_MAX_TOKENS)
        self._encoding = _encoding_for(self._model)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        texts = [self._truncate(t) for t in texts]

        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
                batch = texts[start : start + _OPENAI_BATCH_LIMIT]
                response = await self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                )
                all_embeddings.extend(item.embedding for item in response.data)
                logger.info(
                    "openai_embedding_batch",
                    model=self._model,
                    provider=self._provider_label,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
        except openai.APIError as exc:
            raise RAGError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if len(all_embeddings) != len(texts):
            raise RAGError(
                message=f"Expected {len(texts)} embeddings, got {len(all_embeddings)}",
                provider_name=self.get_provider_name(),
            )
        return all_embeddings

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _truncate(self, text: str) -> str:
        """Cut *text* to the model's input window, counted in BPE tokens."""
        tokens = self._encoding.encode(text, disallowed_special=())
        if len(tokens) <= self._max_tokens:
            return text

        # A cut can split a multi-byte character; re-encoding the decoded
        # prefix must still fit the window.
        keep = self._max_tokens
        truncated = self._encoding.decode(tokens[:keep], errors="ignore")
        while len(self._encoding.encode(truncated, disallowed_special=())) > self._max_tokens:
            keep -= 16
            truncated = self._encoding.decode(tokens[:keep], errors="ignore")
        logger.debug(
            "truncating_embedding_input",
            original_tokens=len(tokens),
            truncated_chars=len(truncated),
            model=self._model,
        )
        return truncated
