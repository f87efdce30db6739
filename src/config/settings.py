"""Application settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. **Environment variables** -- e.g. ``OPENAI_API_KEY=sk-abc123``
  2. **.env file** -- key=value lines in the project root ``.env``

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults below
apply when neither source sets a value.  Retrieval and metadata tunables
live in ``config/config.yaml`` (see :mod:`src.config.loader`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ragLite application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Model service ===
    # Empty string = "not configured"; chat and ingestion are then disabled
    # and the API answers 503.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    openai_text_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-ada-002"

    # === Document store ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "documents"

    # === Ingestion ===
    fetch_timeout_seconds: float = 30.0
    dedupe_by_source_url: bool = False

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def is_ai_available(self) -> bool:
        """Readiness probe: model credentials and a store location are configured."""
        return bool(
            self.openai_api_key.strip()
            and self.chromadb_persist_dir.strip()
            and self.chromadb_collection.strip()
        )

    def get_missing_settings(self) -> list[str]:
        """Names of the env vars that keep :meth:`is_ai_available` false."""
        missing: list[str] = []
        if not self.openai_api_key.strip():
            missing.append("OPENAI_API_KEY")
        if not self.chromadb_persist_dir.strip():
            missing.append("CHROMADB_PERSIST_DIR")
        if not self.chromadb_collection.strip():
            missing.append("CHROMADB_COLLECTION")
        return missing
