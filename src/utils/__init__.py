"""Utility modules for ragLite.

- **errors** -- Domain exception hierarchy rooted at RagLiteError; each
  stage raises its own subclass so callers can handle failures granularly.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **concurrency** -- BackgroundTaskRunner, which owns detached enrichment
  tasks and makes their completion observable.
- **streamable** -- StreamableUI render handle updated by tool execution.
- **text_normalizer** -- whitespace cleanup for text extracted from HTML.
"""

from src.utils.concurrency import BackgroundTaskRunner
from src.utils.errors import (
    ConfigurationError,
    FetchError,
    LLMError,
    MetadataExtractionError,
    RAGError,
    RagLiteError,
    StreamClosedError,
    ToolExecutionError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.streamable import StreamableUI
from src.utils.text_normalizer import normalize_whitespace

__all__ = [
    "BackgroundTaskRunner",
    "ConfigurationError",
    "FetchError",
    "LLMError",
    "MetadataExtractionError",
    "RAGError",
    "RagLiteError",
    "StreamClosedError",
    "StreamableUI",
    "ToolExecutionError",
    "configure_logging",
    "get_logger",
    "normalize_whitespace",
]
