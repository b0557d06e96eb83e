"""Process-wide component wiring."""

from __future__ import annotations

from functools import lru_cache

from catalog_search.chat.answer import AnswerService
from catalog_search.core.config import Settings, get_settings
from catalog_search.core.errors import StoreUnavailableError
from catalog_search.core.logging import get_logger
from catalog_search.db.sqlite import SQLiteDatabase
from catalog_search.ingest.checksums import ChecksumStore
from catalog_search.ingest.corpus import CatalogReader
from catalog_search.ingest.pipeline import BatchEmbedder
from catalog_search.providers.client import ProviderClient, build_provider_client
from catalog_search.retrieval.boost import BoostConfig
from catalog_search.retrieval.search import SearchEngine
from catalog_search.retrieval.vector_store import SQLiteVectorStore

logger = get_logger(__name__)

_DB: SQLiteDatabase | None = None
_PROVIDER: ProviderClient | None = None
_CATALOG: CatalogReader | None = None
_EMBEDDER: BatchEmbedder | None = None
_SEARCH_ENGINE: SearchEngine | None = None
_ANSWER_SERVICE: AnswerService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_index_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path, timeout=settings.lookup_timeout)
        db.ensure_schema()
        _DB = db
    return _DB


def get_provider_client() -> ProviderClient:
    global _PROVIDER
    if _PROVIDER is None:
        _PROVIDER = build_provider_client(get_app_settings())
    return _PROVIDER


def get_vector_store() -> SQLiteVectorStore:
    settings = get_app_settings()
    return SQLiteVectorStore(get_index_database(), namespace=settings.corpus, dim=settings.embedding_dim)


def get_checksum_store() -> ChecksumStore:
    return ChecksumStore(get_index_database(), namespace=get_app_settings().corpus)


def get_catalog_reader() -> CatalogReader:
    global _CATALOG
    if _CATALOG is None:
        _CATALOG = CatalogReader.from_settings(get_app_settings())
    return _CATALOG


def get_batch_embedder() -> BatchEmbedder:
    global _EMBEDDER
    if _EMBEDDER is None:
        settings = get_app_settings()
        _EMBEDDER = BatchEmbedder(
            reader=get_catalog_reader(),
            checksums=get_checksum_store(),
            store=get_vector_store(),
            provider=get_provider_client(),
            batch_size=settings.batch_size,
            batch_timeout=settings.batch_timeout,
            description_max_chars=settings.description_max_chars,
            enrichments=settings.text_enrichments,
            namespace=settings.corpus,
        )
    return _EMBEDDER


def _load_vocabulary() -> frozenset[str]:
    try:
        return get_catalog_reader().load_vocabulary()
    except StoreUnavailableError as exc:
        logger.warning("Catalog vocabulary unavailable, searching without it: %s", exc)
        return frozenset()


def get_search_engine() -> SearchEngine:
    global _SEARCH_ENGINE
    if _SEARCH_ENGINE is None:
        settings = get_app_settings()
        _SEARCH_ENGINE = SearchEngine(
            provider=get_provider_client(),
            store=get_vector_store(),
            vocabulary=_load_vocabulary(),
            boost=BoostConfig.from_settings(settings),
            overfetch_factor=settings.overfetch_factor,
            overfetch_floor=settings.overfetch_floor,
            query_timeout=settings.query_timeout,
            namespace=settings.corpus,
        )
    return _SEARCH_ENGINE


def get_answer_service() -> AnswerService:
    global _ANSWER_SERVICE
    if _ANSWER_SERVICE is None:
        settings = get_app_settings()
        _ANSWER_SERVICE = AnswerService(
            engine=get_search_engine(),
            provider=get_provider_client(),
            store_name=settings.store_name,
            max_tokens=settings.chat_max_tokens,
            temperature=settings.chat_temperature,
            timeout=settings.chat_timeout,
        )
    return _ANSWER_SERVICE


def reset() -> None:
    """Drop cached components and close open databases."""
    global _DB, _PROVIDER, _CATALOG, _EMBEDDER, _SEARCH_ENGINE, _ANSWER_SERVICE
    if _DB is not None:
        _DB.close()
    if _CATALOG is not None:
        _CATALOG.close()
    get_app_settings.cache_clear()
    get_settings.cache_clear()
    _DB = None
    _PROVIDER = None
    _CATALOG = None
    _EMBEDDER = None
    _SEARCH_ENGINE = None
    _ANSWER_SERVICE = None


__all__ = [
    "get_app_settings",
    "get_index_database",
    "get_provider_client",
    "get_vector_store",
    "get_checksum_store",
    "get_catalog_reader",
    "get_batch_embedder",
    "get_search_engine",
    "get_answer_service",
    "reset",
]
