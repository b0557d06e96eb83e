"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "CATSEARCH_"
DEFAULT_CONFIG_PATH = Path("~/.config/catalog-search/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("storage", "catalog_db_path"): "catalog_db_path",
    ("storage", "lookup_timeout"): "lookup_timeout",
    ("corpus", "name"): "corpus",
    ("corpus", "records_sql"): "records_sql",
    ("corpus", "tags_sql"): "tags_sql",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "dim"): "embedding_dim",
    ("embeddings", "batch_size"): "batch_size",
    ("embeddings", "batch_timeout"): "batch_timeout",
    ("embeddings", "description_max_chars"): "description_max_chars",
    ("azure", "endpoint"): "azure_openai_endpoint",
    ("azure", "api_key"): "azure_openai_key",
    ("azure", "api_version"): "azure_openai_api_version",
    ("azure", "embedding_deployment"): "azure_openai_embedding_deployment",
    ("azure", "chat_deployment"): "azure_openai_chat_deployment",
    ("openai", "api_key"): "openai_api_key",
    ("openai", "embedding_model"): "openai_embedding_model",
    ("openai", "chat_model"): "openai_chat_model",
    ("search", "default_limit"): "default_limit",
    ("search", "query_timeout"): "query_timeout",
    ("search", "overfetch_factor"): "overfetch_factor",
    ("search", "overfetch_floor"): "overfetch_floor",
    ("search", "boost_cap"): "boost_cap",
    ("search", "title_match_boost"): "title_match_boost",
    ("search", "tag_token_boost"): "tag_token_boost",
    ("search", "title_token_boost"): "title_token_boost",
    ("search", "min_boost_token_length"): "min_boost_token_length",
    ("chat", "timeout"): "chat_timeout",
    ("chat", "max_tokens"): "chat_max_tokens",
    ("chat", "temperature"): "chat_temperature",
    ("chat", "store_name"): "store_name",
}

# Fields holding mappings are taken verbatim instead of being flattened.
_MAPPING_FIELDS: Mapping[tuple[str, ...], str] = {
    ("search", "synonyms"): "synonyms",
    ("synonyms",): "synonyms",
    ("embeddings", "text_enrichments"): "text_enrichments",
    ("text_enrichments",): "text_enrichments",
}

DEFAULT_SYNONYMS: dict[str, list[str]] = {
    "dubon": ["doobon", "parka", "coat"],
    "doobon": ["dubon", "parka", "coat"],
    "coat": ["jacket", "parka"],
    "jacket": ["coat", "parka"],
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".catalog-search" / "index.db")
    catalog_db_path: Path = Field(default=Path.home() / ".catalog-search" / "catalog.db")
    lookup_timeout: float = 10.0
    corpus: Literal["products", "emails"] = "products"
    records_sql: str | None = None
    tags_sql: str | None = None

    embedding_backend: Literal["openai", "hashed"] = "openai"
    embedding_dim: int = Field(default=1536, gt=0)
    batch_size: int = Field(default=100, gt=0)
    batch_timeout: float = 30.0
    description_max_chars: int = 500
    text_enrichments: dict[str, list[str]] = Field(default_factory=dict)

    azure_openai_endpoint: str | None = None
    azure_openai_key: str | None = None
    azure_openai_api_version: str = "2024-10-21"
    azure_openai_embedding_deployment: str = "text-embedding-3-small"
    azure_openai_chat_deployment: str = "gpt-4o-mini"
    openai_api_key: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    openai_chat_model: str = "gpt-4o-mini"

    default_limit: int = Field(default=20, gt=0)
    query_timeout: float = 10.0
    overfetch_factor: int = Field(default=3, ge=1)
    overfetch_floor: int = Field(default=50, ge=0)
    boost_cap: float = Field(default=0.3, ge=0.0)
    title_match_boost: float = 0.2
    tag_token_boost: float = 0.1
    title_token_boost: float = 0.05
    min_boost_token_length: int = 3
    synonyms: dict[str, list[str]] = Field(default_factory=lambda: dict(DEFAULT_SYNONYMS))

    chat_timeout: float = 60.0
    chat_max_tokens: int = 1000
    chat_temperature: float = 0.7
    store_name: str = "our store"

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", "catalog_db_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("database paths must be a path or string")

    @field_validator("synonyms", "text_enrichments", mode="before")
    @classmethod
    def _normalize_mapping(cls, value: Any) -> dict[str, list[str]]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise TypeError("expected a mapping of term -> list of terms")
        normalized: dict[str, list[str]] = {}
        for key, items in value.items():
            if isinstance(items, str):
                items = [items]
            normalized[str(key).lower()] = [str(item) for item in items or []]
        return normalized

    @property
    def azure_configured(self) -> bool:
        return bool(self.azure_openai_endpoint and self.azure_openai_key)

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        mapping_field = _MAPPING_FIELDS.get(next_prefix)
        if mapping_field:
            flat[mapping_field] = value
        elif isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with CATSEARCH_ prefix into Settings fields."""
    mapping_fields = set(_MAPPING_FIELDS.values())
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields and field_name not in mapping_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings", "DEFAULT_SYNONYMS"]
