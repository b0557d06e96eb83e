"""Retrieval orchestration components."""

from .vector_store import Neighbor, SQLiteVectorStore, VectorStore, cosine_similarity
from .search import SearchEngine, SearchResponse, SearchResult
from .boost import BoostConfig, compute_boost, expand_synonyms
from .filters import filter_by_tokens, required_tokens

__all__ = [
    "Neighbor",
    "SQLiteVectorStore",
    "VectorStore",
    "cosine_similarity",
    "SearchEngine",
    "SearchResponse",
    "SearchResult",
    "BoostConfig",
    "compute_boost",
    "expand_synonyms",
    "filter_by_tokens",
    "required_tokens",
]
