"""Search orchestration."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterable

from catalog_search.core.errors import ProviderError
from catalog_search.core.logging import get_logger
from catalog_search.core.metrics import SEARCH_FALLBACKS, SEARCH_LATENCY
from catalog_search.models.entities import SourceRecord
from catalog_search.providers.client import ProviderClient
from catalog_search.retrieval.boost import BoostConfig, compute_boost, expand_synonyms
from catalog_search.retrieval.filters import filter_by_tokens, required_tokens
from catalog_search.retrieval.vector_store import Neighbor, VectorStore
from catalog_search.utils.text import extract_meaningful_tokens

logger = get_logger(__name__)


@dataclass(slots=True)
class SearchResult:
    record: SourceRecord
    similarity: float
    boost: float = 0.0

    @property
    def score(self) -> float:
        return self.similarity + self.boost


@dataclass(slots=True)
class SearchResponse:
    query: str
    results: list[SearchResult]
    fallback: bool
    required_tokens: list[str] = field(default_factory=list)


class SearchEngine:
    """Embed, over-fetch, filter on required tokens, boost, re-rank, truncate.

    Holds no mutable state besides the token vocabulary, which is only
    swapped wholesale through :meth:`reload_vocabulary`.
    """

    def __init__(
        self,
        provider: ProviderClient,
        store: VectorStore,
        vocabulary: Iterable[str] = (),
        *,
        boost: BoostConfig | None = None,
        overfetch_factor: int = 3,
        overfetch_floor: int = 50,
        query_timeout: float | None = 10.0,
        namespace: str = "products",
    ) -> None:
        self.provider = provider
        self.store = store
        self._vocabulary = frozenset(vocabulary)
        self.boost = boost or BoostConfig()
        self.overfetch_factor = overfetch_factor
        self.overfetch_floor = overfetch_floor
        self.query_timeout = query_timeout
        self.namespace = namespace

    @property
    def vocabulary(self) -> frozenset[str]:
        return self._vocabulary

    def reload_vocabulary(self, vocabulary: Iterable[str]) -> None:
        self._vocabulary = frozenset(vocabulary)
        logger.info("Loaded %s vocabulary tokens", len(self._vocabulary))

    def fetch_size(self, limit: int) -> int:
        return max(limit * self.overfetch_factor, self.overfetch_floor, limit)

    def search(self, query: str, limit: int = 20) -> SearchResponse:
        """Rank stored records for ``query``; raises ProviderError if the query cannot be embedded."""
        start = time.perf_counter()
        if limit <= 0 or not query.strip():
            return SearchResponse(query=query, results=[], fallback=False)

        vectors = self.provider.embed([query], timeout=self.query_timeout)
        if not vectors:
            raise ProviderError("embed", "no vector returned for query")
        query_vector = vectors[0]
        neighbors = self.store.nearest(query_vector, self.fetch_size(limit))
        logger.debug(
            "Nearest-neighbor lookup returned %s candidates",
            len(neighbors),
            extra={"ctx_namespace": self.namespace},
        )

        required = required_tokens(query, self._vocabulary)
        outcome = filter_by_tokens(neighbors, required, lambda neighbor: neighbor.record)
        if outcome.fallback:
            SEARCH_FALLBACKS.labels(namespace=self.namespace).inc()

        results = self._boost(query, outcome.candidates)
        results.sort(key=lambda result: (-result.score, result.record.id))
        results = results[:limit]

        SEARCH_LATENCY.labels(namespace=self.namespace).observe(time.perf_counter() - start)
        logger.info(
            "Search returned %s results",
            len(results),
            extra={"ctx_fallback": outcome.fallback, "ctx_required_tokens": required},
        )
        return SearchResponse(query=query, results=results, fallback=outcome.fallback, required_tokens=required)

    def _boost(self, query: str, neighbors: list[Neighbor]) -> list[SearchResult]:
        tokens = expand_synonyms(extract_meaningful_tokens(query), self.boost.synonyms)
        return [
            SearchResult(
                record=neighbor.record,
                similarity=neighbor.similarity,
                boost=compute_boost(neighbor.record, query, tokens, self.boost),
            )
            for neighbor in neighbors
        ]


__all__ = ["SearchEngine", "SearchResult", "SearchResponse"]
