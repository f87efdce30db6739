"""Document ingestion for the ragLite knowledge base.

Pipeline: **fetch -> extract -> embed -> store**, followed by detached
metadata enrichment.

1. **Fetch** (via IContentFetcher) -- one GET with browser-like headers.
2. **Extract** (src/services/content_extractor.py) -- HTML to main text.
3. **Embed** (via IEmbeddingProvider) -- one vector per document.
4. **Store** (via IDocumentStore) -- content, vector and source URL.
5. **Enrich** (metadata_extractor.py / MetadataExtractor) -- LLM-derived
   publisher, author, entities and categories, written back by id.
"""

from src.services.ingestion.ingestion_service import IngestionService, browser_headers
from src.services.ingestion.metadata_extractor import MetadataExtractor

__all__ = [
    "IngestionService",
    "MetadataExtractor",
    "browser_headers",
]
