"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

``load_config()`` reads the YAML file, fills in any tunable the file leaves
out from ``_DEFAULTS``, then deep-merges the env-derived sections on top:

    base      = {"retrieval": {"match_threshold": 0.6}}
    overrides = {"app": {"env": "production"}}
    result    = {"retrieval": {"match_threshold": 0.6}, "app": {"env": "production"}}
"""

from copy import deepcopy
from pathlib import Path

import yaml

from src.config.settings import Settings
from src.utils.errors import ConfigurationError

_DEFAULTS: dict = {
    "retrieval": {
        "match_threshold": 0.6,
        "match_count": 3,
    },
    "metadata": {
        "prefix_chars": 1500,
        "temperature": 0.2,
    },
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is not an
            error; built-in defaults are used.
        settings: Settings instance to read overrides from.  A fresh
            ``Settings()`` is created when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the file is not a valid YAML mapping or a
            retrieval/metadata tunable is out of range.
    """
    config = deepcopy(_DEFAULTS)

    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(message=f"Cannot parse {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(
                message=f"{config_path} must contain a mapping at the top level"
            )
        _deep_merge(config, yaml_config)
    _validate_tunables(config)

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "text_model": settings.openai_text_model,
            "embedding_model": settings.openai_embedding_model,
            "ai_available": settings.is_ai_available(),
        },
        "store": {
            "persist_dir": settings.chromadb_persist_dir,
            "collection": settings.chromadb_collection,
        },
        "ingestion": {
            "dedupe_by_source_url": settings.dedupe_by_source_url,
            "fetch_timeout_seconds": settings.fetch_timeout_seconds,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_tunables(config: dict) -> None:
    for section in ("retrieval", "metadata"):
        if not isinstance(config.get(section), dict):
            raise ConfigurationError(message=f"{section} must be a mapping")
    retrieval = config["retrieval"]
    metadata = config["metadata"]

    threshold = retrieval.get("match_threshold")
    if not _is_number(threshold) or not 0 <= threshold <= 1:
        raise ConfigurationError(
            message=f"retrieval.match_threshold must be a number in [0, 1], got {threshold!r}"
        )
    temperature = metadata.get("temperature")
    if not _is_number(temperature) or not 0 <= temperature <= 2:
        raise ConfigurationError(
            message=f"metadata.temperature must be a number in [0, 2], got {temperature!r}"
        )
    for name, value in (
        ("retrieval.match_count", retrieval.get("match_count")),
        ("metadata.prefix_chars", metadata.get("prefix_chars")),
    ):
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigurationError(message=f"{name} must be a positive integer, got {value!r}")
