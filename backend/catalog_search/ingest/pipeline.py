"""Incremental embedding pipeline."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Mapping, Sequence

from catalog_search.core.errors import ProviderError, StoreUnavailableError
from catalog_search.core.logging import get_logger
from catalog_search.core.metrics import EMBEDDED_RECORDS, FAILED_BATCHES, INDEX_SIZE
from catalog_search.ingest.checksums import ChecksumStore, diff
from catalog_search.ingest.corpus import CatalogReader
from catalog_search.ingest.embedding_text import DEFAULT_DESCRIPTION_MAX_CHARS, build_embedding_text
from catalog_search.ingest.types import BatchFailure, EmbedRunStats
from catalog_search.models.entities import SourceRecord
from catalog_search.providers.client import ProviderClient
from catalog_search.retrieval.vector_store import VectorStore

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 100


class BatchEmbedder:
    """Embed only records whose fingerprint changed since the last run.

    Runs are not mutually exclusive; callers must not start two runs
    against the same index concurrently.
    """

    def __init__(
        self,
        reader: CatalogReader,
        checksums: ChecksumStore,
        store: VectorStore,
        provider: ProviderClient,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_timeout: float | None = 30.0,
        description_max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS,
        enrichments: Mapping[str, Sequence[str]] | None = None,
        namespace: str = "products",
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.reader = reader
        self.checksums = checksums
        self.store = store
        self.provider = provider
        self.batch_size = batch_size
        self.batch_timeout = batch_timeout
        self.description_max_chars = description_max_chars
        self.enrichments = dict(enrichments or {})
        self.namespace = namespace

    def run(self) -> EmbedRunStats:
        stats = EmbedRunStats(run_id=f"run_{uuid.uuid4().hex}", namespace=self.namespace)
        log_extra = {"ctx_run_id": stats.run_id, "ctx_namespace": self.namespace}

        records = self.reader.read_records()
        stats.total = len(records)

        try:
            stored = self.checksums.load_all()
        except StoreUnavailableError as exc:
            logger.warning("Checksum store unavailable, re-embedding every record: %s", exc, extra=log_extra)
            stored = {}
            stats.checksum_fallback = True

        changed = diff(records, stored)
        stats.changed = len(changed)
        logger.info("Found %s changed/new records out of %s", stats.changed, stats.total, extra=log_extra)
        if not changed:
            return stats

        batches = [changed[i : i + self.batch_size] for i in range(0, len(changed), self.batch_size)]
        stats.batches = len(batches)
        for number, batch in enumerate(batches, start=1):
            logger.info("Processing batch %s/%s (%s records)", number, len(batches), len(batch), extra=log_extra)
            self._process_batch(number, batch, stats)

        self._update_index_metric()
        if stats.failed_batches:
            logger.error(
                "Embedding run finished with %s failed batches",
                len(stats.failed_batches),
                extra={**log_extra, "ctx_failed_records": len(stats.failed_records)},
            )
        else:
            logger.info("Embedding run complete: %s records embedded", stats.processed, extra=log_extra)
        return stats

    def _process_batch(self, number: int, batch: list[tuple[SourceRecord, str]], stats: EmbedRunStats) -> None:
        texts = [
            build_embedding_text(
                record,
                description_max_chars=self.description_max_chars,
                enrichments=self.enrichments,
            )
            for record, _ in batch
        ]
        stats.provider_calls += 1
        try:
            vectors = self.provider.embed(texts, timeout=self.batch_timeout)
        except ProviderError as exc:
            logger.error("Batch %s failed: %s", number, exc)
            FAILED_BATCHES.labels(namespace=self.namespace).inc()
            record_ids = [record.id for record, _ in batch]
            stats.failed_batches.append(BatchFailure(batch_number=number, record_ids=record_ids, error=str(exc)))
            stats.failed_records.extend(record_ids)
            return

        if len(vectors) != len(batch):
            logger.warning("Batch %s: provider returned %s vectors for %s texts", number, len(vectors), len(batch))

        for idx, (record, digest) in enumerate(batch):
            if idx >= len(vectors):
                stats.failed_records.append(record.id)
                continue
            try:
                self.store.upsert(record, vectors[idx])
            except (ValueError, TypeError, sqlite3.Error) as exc:
                logger.error("Failed to store embedding for record %s: %s", record.id, exc)
                stats.failed_records.append(record.id)
                continue
            stats.processed += 1
            EMBEDDED_RECORDS.labels(namespace=self.namespace).inc()
            try:
                self.checksums.update(record.id, digest)
            except sqlite3.Error as exc:
                # Vector is stored; a stale checksum only means one extra embed next run.
                logger.warning("Failed to update checksum for record %s: %s", record.id, exc)

    def _update_index_metric(self) -> None:
        try:
            INDEX_SIZE.labels(namespace=self.namespace).set(self.store.count())
        except sqlite3.Error as exc:
            logger.debug("Could not refresh index size metric: %s", exc)


__all__ = ["BatchEmbedder", "DEFAULT_BATCH_SIZE"]
