"""ragLite API layer -- routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    ChatRequest,
    ChatResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    IngestionResponse,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "DocumentResponse",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "IngestionResponse",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
]
