"""Tests for the search engine: filtering, fallback, boosting and ranking."""

from __future__ import annotations

import pytest

from catalog_search.core.config import DEFAULT_SYNONYMS
from catalog_search.core.errors import ProviderError
from catalog_search.ingest.embedding_text import build_embedding_text
from catalog_search.models.entities import SourceRecord
from catalog_search.providers import ProviderClient
from catalog_search.retrieval import BoostConfig, SearchEngine, SQLiteVectorStore, compute_boost, expand_synonyms

from conftest import TEST_DIM

GLOCK = SourceRecord(id=1, title="Glock 19 Holster", tags="Glock, Kydex", stock_status="instock")
FOBUS = SourceRecord(id=2, title="Fobus Paddle Holster", tags="Fobus, Paddle", stock_status="instock")


def _engine(index_db, provider, records, vocabulary=()) -> SearchEngine:
    store = SQLiteVectorStore(index_db, namespace="products", dim=TEST_DIM)
    for record in records:
        store.upsert(record, provider.embed([build_embedding_text(record)])[0])
    return SearchEngine(provider, store, vocabulary, boost=BoostConfig(synonyms=DEFAULT_SYNONYMS))


def test_digit_token_filters_to_matching_record(index_db, hashed_provider) -> None:
    engine = _engine(index_db, hashed_provider, [GLOCK, FOBUS])
    response = engine.search("Glock 19", limit=10)

    assert response.required_tokens == ["19"]
    assert [result.record.id for result in response.results] == [1]
    assert response.fallback is False


def test_no_required_tokens_keeps_similarity_order(index_db, hashed_provider) -> None:
    engine = _engine(index_db, hashed_provider, [GLOCK, FOBUS])
    response = engine.search("leather sheath", limit=10)

    assert response.required_tokens == []
    assert {result.record.id for result in response.results} == {1, 2}
    assert response.fallback is False


def test_unmatched_required_token_falls_back_to_similarity(index_db, hashed_provider) -> None:
    engine = _engine(index_db, hashed_provider, [GLOCK, FOBUS])
    response = engine.search("holster 45", limit=10)

    assert response.required_tokens == ["45"]
    assert response.fallback is True
    assert {result.record.id for result in response.results} == {1, 2}


def test_vocabulary_tokens_are_required_until_reloaded(index_db, hashed_provider) -> None:
    engine = _engine(index_db, hashed_provider, [GLOCK, FOBUS], vocabulary={"fobus"})
    assert [r.record.id for r in engine.search("fobus holster").results] == [2]

    engine.reload_vocabulary([])
    assert engine.vocabulary == frozenset()
    assert {r.record.id for r in engine.search("fobus holster").results} == {1, 2}


def test_results_sorted_by_score_and_truncated(index_db, hashed_provider) -> None:
    engine = _engine(index_db, hashed_provider, [GLOCK, FOBUS])
    results = engine.search("holster", limit=1).results
    assert len(results) == 1

    results = engine.search("glock holster", limit=10).results
    scores = [result.score for result in results]
    assert scores == sorted(scores, reverse=True)
    assert results[0].record.id == 1
    assert results[0].boost > 0


def test_equal_scores_break_ties_by_record_id(index_db, hashed_provider) -> None:
    twin_b = SourceRecord(id=5, title="Kydex Holster")
    twin_a = SourceRecord(id=3, title="Kydex Holster")
    engine = _engine(index_db, hashed_provider, [twin_b, twin_a])
    assert [r.record.id for r in engine.search("kydex").results] == [3, 5]


def test_blank_query_and_non_positive_limit_return_nothing(index_db, hashed_provider) -> None:
    engine = _engine(index_db, hashed_provider, [GLOCK])
    assert engine.search("   ").results == []
    assert engine.search("glock", limit=0).results == []


def test_fetch_size_overfetches_with_floor(index_db, hashed_provider) -> None:
    engine = _engine(index_db, hashed_provider, [])
    assert engine.fetch_size(20) == 60
    assert engine.fetch_size(5) == 50


def test_boost_is_capped() -> None:
    config = BoostConfig()
    record = SourceRecord(id=9, title="Glock Kydex Holster", tags="glock, kydex, holster")
    tokens = ["glock", "kydex", "holster"]
    assert compute_boost(record, "glock kydex holster", tokens, config) == pytest.approx(config.cap)
    assert compute_boost(SourceRecord(id=10, title="Belt"), "holster", ["holster"], config) == 0.0


def test_title_match_outweighs_single_token_bonus() -> None:
    config = BoostConfig()
    record = SourceRecord(id=1, title="Glock 19 Holster")
    exact = compute_boost(record, "glock 19", ["glock", "19"], config)
    partial = compute_boost(record, "glock 17", ["glock", "17"], config)
    assert exact == pytest.approx(config.title_match + config.title_token)
    assert partial == pytest.approx(config.title_token)


def test_synonym_expansion_only_adds_terms() -> None:
    expanded = expand_synonyms(["dubon", "winter"], DEFAULT_SYNONYMS)
    assert expanded[:1] == ["dubon"]
    assert set(expanded) == {"dubon", "doobon", "parka", "coat", "winter"}
    assert expand_synonyms(["belt"], DEFAULT_SYNONYMS) == ["belt"]


class RecordingStore:
    dim = TEST_DIM

    def __init__(self) -> None:
        self.lookups = 0

    def nearest(self, query_vector, k):
        self.lookups += 1
        return []


class UnreachableBackend:
    name = "unreachable"

    def embed(self, texts, timeout=None):
        raise TimeoutError("query embedding timed out")

    def complete(self, messages, *, max_tokens, temperature, timeout=None):
        raise TimeoutError("completion timed out")


class EmptyBackend(UnreachableBackend):
    name = "empty"

    def embed(self, texts, timeout=None):
        return []


def test_failed_query_embedding_raises_before_scanning() -> None:
    store = RecordingStore()
    engine = SearchEngine(ProviderClient(UnreachableBackend(), UnreachableBackend()), store)
    with pytest.raises(ProviderError):
        engine.search("glock 19")
    assert store.lookups == 0


def test_empty_embedding_response_raises_provider_error() -> None:
    store = RecordingStore()
    engine = SearchEngine(ProviderClient(EmptyBackend()), store)
    with pytest.raises(ProviderError) as excinfo:
        engine.search("glock 19")
    assert excinfo.value.retryable
    assert store.lookups == 0
