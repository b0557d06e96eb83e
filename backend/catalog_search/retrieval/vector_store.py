"""Vector persistence and nearest-neighbor lookup."""

from __future__ import annotations

import heapq
import math
import sqlite3
from array import array
from dataclasses import dataclass
from typing import Iterable, Iterator, Protocol, Sequence

import orjson

from catalog_search.core.errors import StoreUnavailableError
from catalog_search.core.logging import get_logger
from catalog_search.db.sqlite import SQLiteDatabase, iter_rows
from catalog_search.models.entities import EmbeddingRecord, SourceRecord
from catalog_search.utils.time import now_ms

logger = get_logger(__name__)


@dataclass(slots=True)
class Neighbor:
    record: SourceRecord
    similarity: float

    @property
    def distance(self) -> float:
        return 1.0 - self.similarity


class VectorStore(Protocol):
    dim: int

    def upsert(self, record: SourceRecord, vector: Sequence[float]) -> None:
        ...

    def get(self, record_id: int) -> EmbeddingRecord | None:
        ...

    def nearest(self, query_vector: Sequence[float], k: int) -> list[Neighbor]:
        ...

    def count(self) -> int:
        ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| |b|); 0.0 for zero norms, non-finite input or mismatched dimensions."""
    if len(a) != len(b) or not a:
        return 0.0
    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    value = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    if not math.isfinite(value):
        return 0.0
    return max(-1.0, min(1.0, value))


def top_k(scored: Iterable[tuple[float, int, SourceRecord]], k: int) -> list[Neighbor]:
    """Bounded selection of the ``k`` best (similarity desc, record id asc)."""
    if k <= 0:
        return []
    heap: list[tuple[float, int, int, SourceRecord]] = []
    for seq, (score, record_id, record) in enumerate(scored):
        # Min-heap on (score, -id): the root is the worst kept entry.
        item = (score, -record_id, seq, record)
        if len(heap) < k:
            heapq.heappush(heap, item)
        elif (score, -record_id) > heap[0][:2]:
            heapq.heapreplace(heap, item)
    heap.sort(key=lambda item: (-item[0], -item[1]))
    return [Neighbor(record=item[3], similarity=item[0]) for item in heap]


def vector_to_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def vector_from_bytes(payload: bytes, dim: int | None = None) -> list[float]:
    """Decode a float32 blob; raises ValueError when it is malformed."""
    floats = array("f")
    floats.frombytes(payload)
    if dim is not None and len(floats) != dim:
        raise ValueError(f"expected {dim} dimensions, got {len(floats)}")
    if not all(math.isfinite(value) for value in floats):
        raise ValueError("vector contains non-finite values")
    return list(floats)


class SQLiteVectorStore:
    """Brute-force cosine search over vectors stored in SQLite.

    Rows are streamed and only ``k`` candidates are kept in memory, so a
    query costs O(n * dim) time and O(k) space.
    """

    def __init__(self, db: SQLiteDatabase, namespace: str, dim: int) -> None:
        self.db = db
        self.namespace = namespace
        self.dim = dim

    def upsert(self, record: SourceRecord, vector: Sequence[float]) -> None:
        if len(vector) != self.dim:
            raise ValueError(f"Vector dimension mismatch: expected {self.dim}, got {len(vector)}")
        if not all(math.isfinite(value) for value in vector):
            raise ValueError("Vector contains non-finite values")
        now = now_ms()
        self.db.execute(
            """
            INSERT INTO record_embeddings (namespace, record_id, dim, vector, title, record_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (namespace, record_id) DO UPDATE SET
              dim = excluded.dim,
              vector = excluded.vector,
              title = excluded.title,
              record_json = excluded.record_json,
              updated_at = excluded.updated_at
            """,
            [
                self.namespace,
                record.id,
                len(vector),
                vector_to_bytes(vector),
                record.title,
                orjson.dumps(record.to_dict(), default=str).decode("utf-8"),
                now,
                now,
            ],
        )
        self.db.commit()

    def get(self, record_id: int) -> EmbeddingRecord | None:
        row = self.db.execute(
            """
            SELECT record_id, vector, record_json, created_at, updated_at
            FROM record_embeddings WHERE namespace = ? AND record_id = ?
            """,
            [self.namespace, record_id],
        ).fetchone()
        if row is None:
            return None
        try:
            return EmbeddingRecord(
                record=_record_from_json(row["record_json"]),
                vector=vector_from_bytes(row["vector"]),
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
        except (ValueError, TypeError, orjson.JSONDecodeError) as exc:
            logger.warning("Stored embedding for record %s is malformed: %s", record_id, exc)
            return None

    def nearest(self, query_vector: Sequence[float], k: int) -> list[Neighbor]:
        query = list(query_vector)
        return top_k(self._score_rows(query), k)

    def delete(self, record_id: int) -> bool:
        cursor = self.db.execute(
            "DELETE FROM record_embeddings WHERE namespace = ? AND record_id = ?",
            [self.namespace, record_id],
        )
        self.db.commit()
        return cursor.rowcount > 0

    def count(self) -> int:
        row = self.db.execute(
            "SELECT COUNT(*) AS count FROM record_embeddings WHERE namespace = ?",
            [self.namespace],
        ).fetchone()
        return int(row["count"]) if row else 0

    def _score_rows(self, query: list[float]) -> Iterator[tuple[float, int, SourceRecord]]:
        try:
            cursor = self.db.execute(
                """
                SELECT record_id, vector, record_json FROM record_embeddings
                WHERE namespace = ? AND title != ''
                """,
                [self.namespace],
            )
        except sqlite3.Error as exc:
            raise StoreUnavailableError("vector store", str(exc)) from exc
        skipped = 0
        for row in iter_rows(cursor):
            try:
                vector = vector_from_bytes(row["vector"])
                record = _record_from_json(row["record_json"])
            except (ValueError, TypeError, orjson.JSONDecodeError):
                skipped += 1
                continue
            yield cosine_similarity(query, vector), record.id, record
        if skipped:
            logger.warning("Skipped %s malformed embedding rows", skipped, extra={"ctx_namespace": self.namespace})


def _record_from_json(payload: str) -> SourceRecord:
    data = orjson.loads(payload)
    if not isinstance(data, dict):
        raise TypeError("record payload is not an object")
    return SourceRecord.from_row(data)


__all__ = [
    "Neighbor",
    "VectorStore",
    "SQLiteVectorStore",
    "cosine_similarity",
    "top_k",
    "vector_to_bytes",
    "vector_from_bytes",
]
