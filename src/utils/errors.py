"""Custom exception hierarchy for ragLite.

All application exceptions inherit from :class:`RagLiteError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "httpx") caused the failure.

The hierarchy is organized by pipeline stage:

    RagLiteError  (base -- catch-all for any ragLite error)
    +-- FetchError               (ingestion: retrieving a URL)
    +-- MetadataExtractionError  (enrichment: model output unusable)
    +-- LLMError                 (any model-service call failure)
    +-- RAGError                 (embedding or document-store failure)
    +-- ToolExecutionError       (unknown tool / invalid tool arguments)
    +-- StreamClosedError        (render handle used after completion)
    +-- ConfigurationError       (invalid config file or tunables)

Ingestion turns ``FetchError`` and ``RAGError`` into structured ``ServiceError``
values (see :mod:`src.models.results`) and only logs metadata failures.
Generation errors (``LLMError``) propagate to the caller unchanged.
"""


class RagLiteError(Exception):
    """Base exception for all ragLite errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class FetchError(RagLiteError):
    """Raised when a URL cannot be retrieved (DNS, TLS, connect, read timeout)."""

    def __init__(
        self,
        message: str = "Failed to fetch URL",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MetadataExtractionError(RagLiteError):
    """Raised when the model's metadata response is not well-formed JSON
    matching the expected shape."""

    def __init__(
        self,
        message: str = "Metadata extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class LLMError(RagLiteError):
    """Raised when a model-service call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(RagLiteError):
    """Raised when a RAG operation fails (embedding or document store)."""

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Conversation errors
# ---------------------------------------------------------------------------

class ToolExecutionError(RagLiteError):
    """Raised when the model requests an unknown tool or passes arguments
    that do not validate against the tool's parameter model."""

    def __init__(
        self,
        message: str = "Tool execution failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StreamClosedError(RagLiteError):
    """Raised when a streamable render handle is updated after ``done()``."""

    def __init__(
        self,
        message: str = "Stream is already closed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(RagLiteError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
