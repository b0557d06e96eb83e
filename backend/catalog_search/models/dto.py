"""Pydantic DTOs printed by the command-line interface."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from catalog_search.chat.answer import ChatAnswer
from catalog_search.ingest.types import EmbedRunStats
from catalog_search.models.entities import SourceRecord
from catalog_search.retrieval.search import SearchResponse, SearchResult


class RecordModel(BaseModel):
    id: int
    title: str
    name: str | None = None
    sku: str | None = None
    min_price: str | None = None
    max_price: str | None = None
    stock_status: str | None = None
    stock_quantity: float | None = None
    tags: str | None = None
    short_description: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: SourceRecord) -> "RecordModel":
        data = record.to_dict()
        data.pop("description", None)
        return cls(**data)


class SearchResultModel(BaseModel):
    record: RecordModel
    similarity: float
    boost: float
    score: float

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultModel":
        return cls(
            record=RecordModel.from_record(result.record),
            similarity=result.similarity,
            boost=result.boost,
            score=result.score,
        )


class SearchResponseModel(BaseModel):
    query: str
    fallback: bool
    required_tokens: list[str]
    results: list[SearchResultModel]

    @classmethod
    def from_response(cls, response: SearchResponse) -> "SearchResponseModel":
        return cls(
            query=response.query,
            fallback=response.fallback,
            required_tokens=list(response.required_tokens),
            results=[SearchResultModel.from_result(result) for result in response.results],
        )


class BatchFailureModel(BaseModel):
    batch_number: int
    record_ids: list[int]
    error: str


class EmbedRunModel(BaseModel):
    run_id: str
    namespace: str
    total: int
    changed: int
    processed: int
    batches: int
    provider_calls: int
    failed_records: list[int]
    failed_batches: list[BatchFailureModel]
    checksum_fallback: bool
    success: bool

    @classmethod
    def from_stats(cls, stats: EmbedRunStats) -> "EmbedRunModel":
        return cls(**stats.to_dict())


class ChatAnswerModel(BaseModel):
    response: str
    products: dict[str, str]
    fallback: bool

    @classmethod
    def from_answer(cls, answer: ChatAnswer) -> "ChatAnswerModel":
        return cls(response=answer.response, products=dict(answer.products), fallback=answer.fallback)


class IndexStatsModel(BaseModel):
    namespace: str
    embeddings: int
    checksums: int
    provider: str
    dim: int


__all__ = [
    "RecordModel",
    "SearchResultModel",
    "SearchResponseModel",
    "BatchFailureModel",
    "EmbedRunModel",
    "ChatAnswerModel",
    "IndexStatsModel",
]
